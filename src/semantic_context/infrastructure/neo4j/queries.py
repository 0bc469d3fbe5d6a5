"""Centralized Cypher for the turn store.

All queries the Neo4j repository runs live here.
"""

from typing import LiteralString


class TurnQueries:
    """All turn-related queries in one place."""

    @staticmethod
    def schema() -> list[LiteralString]:
        """Idempotent constraint and index creation."""
        return [
            "CREATE CONSTRAINT turn_id_unique IF NOT EXISTS FOR (t:Turn) REQUIRE t.id IS UNIQUE",
            "CREATE INDEX turn_scope IF NOT EXISTS FOR (t:Turn) ON (t.guild_id, t.created_at)",
        ]

    @staticmethod
    def create_turn(role: str) -> LiteralString:
        """CREATE (not MERGE) so a duplicate id trips the uniqueness constraint."""
        if role == "assistant":
            return "CREATE (t:Turn:AssistantTurn) SET t = $properties RETURN t.id AS id"
        return "CREATE (t:Turn:UserTurn) SET t = $properties RETURN t.id AS id"

    @staticmethod
    def query_scope(with_author: bool, with_before: bool) -> LiteralString:
        """Turns in a guild, newest first.

        Parameters: $guild_id, $limit and optionally $author_id, $before (epoch seconds).
        """
        query: LiteralString = "MATCH (t:Turn) WHERE t.guild_id = $guild_id"
        if with_author:
            query += " AND (t.author_id = $author_id OR t.reply_to_author_id = $author_id)"
        if with_before:
            query += " AND t.created_at < $before"
        query += " RETURN t ORDER BY t.created_at DESC, t.id DESC LIMIT $limit"
        return query

    @staticmethod
    def statistics() -> LiteralString:
        return """
        MATCH (t:Turn)
        RETURN count(t) AS total_messages,
               count(CASE WHEN size(t.vector) > 0 THEN 1 END) AS messages_with_vectors,
               count(DISTINCT t.channel_id) AS unique_channels
        """
