from songbird.backend.client import BackendClient

__all__ = ["BackendClient"]
