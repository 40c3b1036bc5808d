import asyncio
from collections import defaultdict


class UserLocks:
    """One ``asyncio.Lock`` per user id.

    Held across a read-modify-write of a user's record so two requests for the
    same user cannot both act on the same snapshot.
    """

    def __init__(self):
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def __call__(self, user_id: str) -> asyncio.Lock:
        return self._locks[user_id]

    def __len__(self) -> int:
        return len(self._locks)
