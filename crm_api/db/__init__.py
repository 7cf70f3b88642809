from crm_api.db.session import SessionLocal, engine, get_db

__all__ = ["SessionLocal", "engine", "get_db"]
