"""Infrastructure adapters (record store, storage, geocoding, notifications)"""
