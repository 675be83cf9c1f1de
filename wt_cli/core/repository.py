"""Persistence of workout days and session logs in the document store."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Protocol

from wt_cli.core.api import APIError, DocumentStoreAPI
from wt_cli.core.constants import DAYS_COLLECTION, LOGS_COLLECTION
from wt_cli.core.documents import (
    decode_document,
    document_id,
    encode_fields,
    format_timestamp,
)
from wt_cli.core.models import SessionSummary, WorkoutDay

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Base class for document store failures surfaced to callers."""


class PersistenceLoadFailure(PersistenceError):
    """Raised when day definitions or session history cannot be read."""


class PersistenceSaveFailure(PersistenceError):
    """Raised when a day or a session summary cannot be written."""


class Repository(Protocol):
    def list_workout_days(self) -> Dict[str, WorkoutDay]:
        ...

    def save_session_summary(self, summary: SessionSummary) -> str:
        ...

    def query_session_summaries(
        self, since: datetime, most_recent_first: bool = True
    ) -> List[SessionSummary]:
        ...


def summary_to_document(summary: SessionSummary) -> Dict[str, Any]:
    """Session summary payload with native timestamps for range queries."""
    payload = summary.to_dict()
    payload["startTime"] = summary.start_time
    payload["endTime"] = summary.end_time
    payload["timestamp"] = summary.timestamp
    return payload


class WorkoutRepository:
    """Workout days and session logs backed by ``DocumentStoreAPI``."""

    def __init__(
        self,
        api: DocumentStoreAPI,
        days_collection: str = DAYS_COLLECTION,
        logs_collection: str = LOGS_COLLECTION,
    ) -> None:
        self.api = api
        self.days_collection = days_collection
        self.logs_collection = logs_collection

    def list_workout_days(self) -> Dict[str, WorkoutDay]:
        try:
            documents = self.api.list_documents(self.days_collection)
        except APIError as exc:
            raise PersistenceLoadFailure(f"Failed to load workout days: {exc}") from exc

        days: Dict[str, WorkoutDay] = {}
        for document in documents:
            day_id = document_id(document)
            try:
                days[day_id] = WorkoutDay.from_dict(decode_document(document), day_id=day_id)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping invalid workout day %s: %s", day_id, exc)
        logger.debug("Loaded %d workout days", len(days))
        return days

    def get_workout_day(self, day_id: str) -> WorkoutDay:
        try:
            document = self.api.get_document(self.days_collection, day_id)
            return WorkoutDay.from_dict(decode_document(document), day_id=day_id)
        except APIError as exc:
            raise PersistenceLoadFailure(f"Failed to load workout day {day_id}: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceLoadFailure(f"Invalid workout day {day_id}: {exc}") from exc

    def create_workout_day(self, day: WorkoutDay) -> str:
        try:
            document = self.api.create_document(self.days_collection, encode_fields(day.to_dict()))
        except APIError as exc:
            raise PersistenceSaveFailure(f"Failed to create workout day '{day.name}': {exc}") from exc
        day_id = document_id(document)
        logger.debug("Created workout day %s", day_id)
        return day_id

    def update_workout_day(self, day_id: str, day: WorkoutDay) -> None:
        try:
            self.api.update_document(self.days_collection, day_id, encode_fields(day.to_dict()))
        except APIError as exc:
            raise PersistenceSaveFailure(f"Failed to save workout day {day_id}: {exc}") from exc

    def delete_workout_day(self, day_id: str) -> None:
        try:
            self.api.delete_document(self.days_collection, day_id)
        except APIError as exc:
            raise PersistenceSaveFailure(f"Failed to delete workout day {day_id}: {exc}") from exc

    def save_session_summary(self, summary: SessionSummary) -> str:
        try:
            document = self.api.create_document(
                self.logs_collection, encode_fields(summary_to_document(summary))
            )
        except APIError as exc:
            raise PersistenceSaveFailure(f"Failed to save workout data: {exc}") from exc
        summary_id = document_id(document)
        logger.debug("Saved session summary %s", summary_id)
        return summary_id

    def query_session_summaries(
        self, since: datetime, most_recent_first: bool = True
    ) -> List[SessionSummary]:
        query = {
            "from": [{"collectionId": self.logs_collection}],
            "where": {
                "fieldFilter": {
                    "field": {"fieldPath": "timestamp"},
                    "op": "GREATER_THAN_OR_EQUAL",
                    "value": {"timestampValue": format_timestamp(since)},
                }
            },
            "orderBy": [
                {
                    "field": {"fieldPath": "timestamp"},
                    "direction": "DESCENDING" if most_recent_first else "ASCENDING",
                }
            ],
        }
        try:
            documents = self.api.run_query(query)
        except APIError as exc:
            raise PersistenceLoadFailure(f"Failed to load session history: {exc}") from exc

        summaries: List[SessionSummary] = []
        for document in documents:
            try:
                summaries.append(
                    SessionSummary.from_dict(decode_document(document), summary_id=document_id(document))
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise PersistenceLoadFailure(
                    f"Invalid session log {document_id(document)}: {exc}"
                ) from exc
        return summaries
