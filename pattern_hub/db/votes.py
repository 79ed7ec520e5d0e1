"""Vote database operations."""

from typing import Any, Dict

from pattern_hub.db.base import SupabaseDB
from pattern_hub.db.helpers import get_first, get_rows

VALID_VOTES = (1, -1)


class VoteDB(SupabaseDB):
    """Up/down votes and the per-item tallies derived from them.

    Read-then-write without a transaction: concurrent votes on one item are
    eventually consistent.
    """

    logger_name = "vote-db"

    def cast_vote(self, user_id: Any, item_id: Any, vote: int) -> Dict[str, int]:
        """
        Record a vote and return the item's new tallies.

        Repeating a vote withdraws it; the opposite vote replaces it.
        """
        if vote not in VALID_VOTES:
            raise ValueError(f"Invalid vote value: {vote}")

        with self._guard(f"vote on item {item_id}"):
            votes = self.client.table("votes")
            existing = get_first(
                votes.select("vote").eq("user_id", user_id).eq("item_id", item_id).limit(1).execute().data
            )

            if existing is None:
                votes.insert({"user_id": user_id, "item_id": item_id, "vote": vote}).execute()
            elif existing.get("vote") == vote:
                votes.delete().eq("user_id", user_id).eq("item_id", item_id).execute()
            else:
                votes.update({"vote": vote}).eq("user_id", user_id).eq("item_id", item_id).execute()

            tally = self.tally(item_id)
            # net score, read by the hot sort
            self.client.table("items").update(
                {**tally, "vote_score": tally["votes_up"] - tally["votes_down"]}
            ).eq("id", item_id).execute()

        self.logger.info(
            "Vote recorded",
            extra={"item_id": item_id, "user_id": user_id, "vote": vote,
                   "net": tally["votes_up"] - tally["votes_down"]},
        )
        return tally

    def tally(self, item_id: Any) -> Dict[str, int]:
        result = self.client.table("votes").select("vote").eq("item_id", item_id).execute()
        values = [row.get("vote") for row in get_rows(result.data)]
        return {
            "votes_up": sum(1 for v in values if v == 1),
            "votes_down": sum(1 for v in values if v == -1),
        }
