import json
import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from config import CLIENT_STORAGE_URL
from database import make_engine
from models import ClientStorageItem

logger = logging.getLogger(__name__)

# Keys kept by the dashboard between restarts
USER_KEY = "user"
TOKEN_KEY = "token"
ONBOARDING_KEY = "hasSeenVideo"


class ClientStorage:
    """localStorage-style string key/value store backed by a local database."""

    def __init__(self, url: str = CLIENT_STORAGE_URL):
        self.engine = make_engine(url)
        ClientStorageItem.__table__.create(bind=self.engine, checkfirst=True)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def get_item(self, key: str) -> Optional[str]:
        with self.SessionLocal() as db:
            item = db.get(ClientStorageItem, key)
            return item.value if item else None

    def set_item(self, key: str, value: str) -> None:
        with self.SessionLocal() as db:
            item = db.get(ClientStorageItem, key)
            if item:
                item.value = value
            else:
                db.add(ClientStorageItem(key=key, value=value))
            db.commit()

    def remove_item(self, key: str) -> None:
        with self.SessionLocal() as db:
            item = db.get(ClientStorageItem, key)
            if item:
                db.delete(item)
                db.commit()

    def get_json(self, key: str):
        raw = self.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"[STORAGE] Discarding unreadable value under '{key}'")
            return None

    def set_json(self, key: str, value) -> None:
        self.set_item(key, json.dumps(value))
