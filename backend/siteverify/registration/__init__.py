"""Registration codes and account creation"""

from .service import RegistrationService

__all__ = ["RegistrationService"]
