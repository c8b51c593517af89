"""Counter Repository - Atomic sequential integer IDs"""
from pymongo import ReturnDocument
from pymongo.collection import Collection

from .mongo_client import get_collection
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CounterRepository:
    """
    One counter document per sequence name: {_id: name, seq: int}.

    Increments are a single find_one_and_update, so concurrent creators never
    receive the same value.
    """

    def __init__(self):
        self._counters: Collection = get_collection("counters")

    def next_sequence(self, name: str) -> int:
        """Increment and return the next value of a sequence (first value is 1)"""
        doc = self._counters.find_one_and_update(
            {"_id": name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return int(doc["seq"])

    def current_value(self, name: str) -> int:
        doc = self._counters.find_one({"_id": name})
        return int(doc["seq"]) if doc else 0
