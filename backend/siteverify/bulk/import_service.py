"""Bulk import of contact addresses into verification documents.

Rows are validated first, then geocoded concurrently, then created one at
a time in row order. Each document is committed together with its
``create`` audit event. The batch is best-effort: a bad row is reported in
the result and never stops the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from typing import Any, BinaryIO, Iterable, Mapping, Optional, Union

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..audit.service import record_transition, record_denial, denial_payload
from ..auth.guard import authorize
from ..config import get_settings
from ..domain.geofence.evaluator import validate_coordinate
from ..domain.ports.bounded import call_with_timeout
from ..domain.ports.geocoding_port import GeocodingPort, GeocodeResult
from ..domain.verification.errors import AuthorizationError, ValidationError, VerificationError
from ..domain.verification.models import Actor, normalize_region
from ..domain.verification.status import WorkflowAction, resolve_transition
from ..infrastructure.repositories.document_repository import DocumentRepository
from ..models.user import EMAIL_PATTERN
from ..models.verification_document import VerificationDocument
from ..observability.metrics import import_rows_total, external_call_failures_total
from ..observability.request_id import bind_context
from .schemas import ImportResult, RowFailure, IMPORT_COLUMNS, REQUIRED_IMPORT_COLUMNS

logger = logging.getLogger(__name__)

ImportSource = Union[bytes, BinaryIO, Iterable[Mapping[str, Any]]]

ADDRESS_COLUMNS = ("address", "city", "state", "country")

# Stands in for a line with more fields than the header so row order is kept
_MALFORMED_LINE = "\x00malformed"


class BulkImportService:
    """Service for importing verification documents from CSV or row mappings"""

    def __init__(
        self,
        db: Session,
        geocoder: Optional[GeocodingPort] = None,
        *,
        max_workers: int = 4,
    ):
        self.db = db
        self.repository = DocumentRepository(db)
        self.geocoder = geocoder
        self.max_workers = max_workers

    def parse_csv(self, file: BinaryIO) -> tuple[pd.DataFrame, list[list[str]]]:
        """
        Parse CSV file into pandas DataFrame.

        Lines with more fields than the header are not fatal: each is kept in
        place as a marker row so its data-row index survives, and its raw
        fields are returned alongside the frame in file order.

        Args:
            file: Binary file object (CSV content)

        Returns:
            (DataFrame with one row per data line, fields of each malformed line)

        Raises:
            ValueError: If CSV is empty or cannot be tokenized at all
        """
        raw = file.read()
        bad_lines: list[list[str]] = []

        try:
            header = [str(c) for c in pd.read_csv(BytesIO(raw), dtype=str, nrows=0).columns]
            width = len(header)

            def keep_position(fields: list[str]) -> list[str]:
                bad_lines.append(fields)
                return [_MALFORMED_LINE] + [""] * (width - 1)

            # The header line is read as row 0 so a wide first data line is
            # never taken for an index column
            df = pd.read_csv(
                BytesIO(raw),
                header=None,
                names=list(range(width)),
                dtype=str,
                keep_default_na=False,
                engine="python",
                on_bad_lines=keep_position,
            )
            df = df.iloc[1:]
            df.columns = header
        except pd.errors.EmptyDataError:
            raise ValueError("CSV file is empty")
        except pd.errors.ParserError as e:
            raise ValueError(f"CSV parsing error: {str(e)}")
        except UnicodeDecodeError as e:
            raise ValueError(f"CSV is not valid UTF-8: {e}")

        if df.empty:
            raise ValueError("CSV file is empty")
        return df, bad_lines

    def load_records(self, source: ImportSource) -> list[Union[dict[str, str], ValidationError]]:
        """Turn CSV bytes, a binary stream or row mappings into string records.

        A row that cannot be read (a CSV line with too many fields, or an
        element that is not a mapping) comes back as a ValidationError in its
        position so the caller can report it against its row index.

        Raises:
            ValueError: If the source holds no rows or cannot be parsed
        """
        if isinstance(source, (bytes, bytearray)):
            source = BytesIO(source)
        if hasattr(source, "read"):
            df, bad_lines = self.parse_csv(source)
            first_column = df.columns[0]
            pending_bad = iter(bad_lines)
            records = []
            for record in df.to_dict(orient="records"):
                if record[first_column] == _MALFORMED_LINE:
                    fields = next(pending_bad)
                    records.append(ValidationError(
                        f"Malformed row: expected {len(df.columns)} fields, found {len(fields)}"
                    ))
                else:
                    records.append(record)
            return records

        records = []
        for row in source:
            if isinstance(row, Mapping):
                records.append({str(k): "" if v is None else str(v) for k, v in row.items()})
            else:
                records.append(ValidationError(f"Row is not a mapping of column to value: {type(row).__name__}"))
        if not records:
            raise ValueError("No rows to import")
        return records

    def validate_row(self, record: Mapping[str, Any]) -> dict[str, str]:
        """
        Validate a single row and return its cleaned fields.

        Raises:
            ValidationError: If a required field is missing or email is malformed
        """
        cleaned = {col: str(record.get(col, "") or "").strip() for col in IMPORT_COLUMNS}

        missing = [col for col in REQUIRED_IMPORT_COLUMNS if not cleaned[col]]
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

        if cleaned["email"] and not EMAIL_PATTERN.match(cleaned["email"]):
            raise ValidationError(f"Invalid email address '{cleaned['email']}'")

        return cleaned

    def import_documents(
        self,
        source: ImportSource,
        actor: Actor,
        *,
        submitter_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ImportResult:
        """
        Import documents for a submitter.

        Args:
            source: CSV bytes / binary stream, or an iterable of row mappings
                with columns fullName, email, phone, address, city, state, country
            actor: Caller (submitter importing for themselves, or admin)
            submitter_id: Owner of the created documents (defaults to the actor)
            timeout: Bound for each geocoding call (default EXTERNAL_CALL_TIMEOUT_SECONDS)

        Returns:
            ImportResult with the created count and per-row failures

        Raises:
            AuthorizationError: If the actor may not import for submitter_id
        """
        submitter_id = submitter_id or actor.user_id
        decision = authorize(actor, WorkflowAction.IMPORT, owner_id=submitter_id)
        if not decision.allowed:
            exc = AuthorizationError(decision.reason, decision.message)
            record_denial(
                self.db, None, actor, WorkflowAction.IMPORT, None, exc.kind,
                payload=denial_payload(exc),
            )
            raise exc

        timeout = timeout or get_settings().EXTERNAL_CALL_TIMEOUT_SECONDS
        result = ImportResult()

        try:
            records = self.load_records(source)
        except ValueError as e:
            result.failed.append(RowFailure(row_index=0, reason=ValidationError.__name__, detail=str(e)))
            import_rows_total.labels(result="failed").inc()
            return result

        # Row indexes are 1-based over data rows
        valid_rows = []
        for row_index, record in enumerate(records, start=1):
            try:
                if isinstance(record, ValidationError):
                    raise record
                valid_rows.append((row_index, self.validate_row(record)))
            except ValidationError as e:
                result.failed.append(RowFailure(row_index=row_index, reason=e.kind, detail=str(e)))
                import_rows_total.labels(result="failed").inc()

        locations = self._geocode_all([row for _, row in valid_rows], timeout)

        for (row_index, row), location in zip(valid_rows, locations):
            try:
                document = self._create_document(row, location, actor, submitter_id, row_index)
            except (SQLAlchemyError, VerificationError) as e:
                self.db.rollback()
                logger.exception(f"Error creating document for row {row_index}")
                result.failed.append(
                    RowFailure(row_index=row_index, reason=type(e).__name__, detail=str(e))
                )
                import_rows_total.labels(result="failed").inc()
                continue

            result.created += 1
            result.document_ids.append(str(document.id))
            import_rows_total.labels(result="created").inc()
            if document.geocode_pending:
                result.geocode_pending += 1
                import_rows_total.labels(result="geocode_pending").inc()

        result.failed.sort(key=lambda f: f.row_index)
        logger.info(
            f"Import finished: created={result.created}, failed={len(result.failed)}, "
            f"geocode_pending={result.geocode_pending}",
            extra={"user_id": actor.user_id, "action": WorkflowAction.IMPORT.value},
        )
        return result

    def _geocode_all(self, rows: list[dict[str, str]], timeout: float) -> list[Optional[GeocodeResult]]:
        """Geocode rows concurrently; None marks a row whose geocoding failed."""
        if not rows:
            return []
        if self.geocoder is None:
            return [None] * len(rows)

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="import-geocode") as pool:
            geocode = bind_context(self._geocode)
            return list(pool.map(lambda row: geocode(row, timeout), rows))

    def _geocode(self, row: dict[str, str], timeout: float) -> Optional[GeocodeResult]:
        address_text = ", ".join(row[col] for col in ADDRESS_COLUMNS if row[col])
        try:
            location = call_with_timeout(
                self.geocoder.resolve, address_text, timeout=timeout, service="geocoder"
            )
            validate_coordinate(location.latitude, location.longitude, label="geocoded")
            return location
        except VerificationError as e:
            external_call_failures_total.labels(service="geocoder").inc()
            logger.warning(f"Geocoding failed for '{address_text}', marking pending: {e}")
            return None

    def _create_document(
        self,
        row: dict[str, str],
        location: Optional[GeocodeResult],
        actor: Actor,
        submitter_id: str,
        row_index: int,
    ) -> VerificationDocument:
        status = resolve_transition(None, WorkflowAction.CREATE)
        region = normalize_region(location.region) if location is not None else None

        document = VerificationDocument(
            submitter_id=submitter_id,
            full_name=row["fullName"],
            email=row["email"].lower() or None,
            phone=row["phone"] or None,
            street=row["address"],
            city=row["city"],
            state=row["state"],
            country=row["country"],
            latitude=float(location.latitude) if location is not None else None,
            longitude=float(location.longitude) if location is not None else None,
            region=region or normalize_region(row["state"]),
            geocode_pending=location is None,
            status=status.value,
        )
        self.repository.add(document)

        record_transition(
            self.db,
            document_id=document.id,
            actor=actor,
            action=WorkflowAction.CREATE,
            prior_status=None,
            new_status=status,
            payload={
                "row_index": row_index,
                "submitter_id": submitter_id,
                "geocode_pending": document.geocode_pending,
            },
        )
        self.db.commit()
        return document
