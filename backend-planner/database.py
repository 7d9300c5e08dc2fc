import os
import json
import logging
import tempfile
import threading
from contextlib import contextmanager
from typing import Iterator, Tuple
from pydantic import ValidationError as PydanticValidationError
from config import settings
from models import UserCollection

logger = logging.getLogger(__name__)


class StoreIntegrityError(RuntimeError):
    pass


class UserStore:
    """
    JSON-file backed user collection.

    Every operation reads the whole file and every mutation rewrites it.
    Mutations must go through `transaction()` so the read/modify/write cycle
    is serialized within the process.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.RLock()

    def _read(self) -> Tuple[UserCollection, bool]:
        """
        Returns the collection and whether it is safe to write back.
        A file that is valid JSON but holds records we cannot read is not.
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            return UserCollection(), True
        except Exception as e:
            logger.warning(f"Could not parse user store at {self.path}, starting empty: {e}")
            return UserCollection(), True

        try:
            return UserCollection.model_validate(raw), True
        except PydanticValidationError as e:
            logger.error(f"User store at {self.path} holds unreadable records: {e}")
            return UserCollection(), False

    def load(self) -> UserCollection:
        """Returns the persisted collection, or an empty one if the file is missing or unreadable."""
        with self._lock:
            data, _ = self._read()
            return data

    def save(self, data: UserCollection):
        """Overwrites the file with the full collection, pretty-printed."""
        payload = data.model_dump(by_alias=True)
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        with self._lock:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".users-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise

    @contextmanager
    def transaction(self) -> Iterator[UserCollection]:
        """
        Holds the store lock across load -> mutate -> save. Nothing is written
        if the block raises, or if the file has records that failed validation.
        """
        with self._lock:
            data, intact = self._read()
            if not intact:
                raise StoreIntegrityError(f"Refusing to overwrite {self.path}: it holds unreadable user records")
            yield data
            self.save(data)


user_store = UserStore(settings.DATA_FILE)


# Dependency
def get_store() -> UserStore:
    return user_store
