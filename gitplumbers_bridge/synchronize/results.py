"""Contains results of issue synchronization runs."""


class ImportResult:
    """Contains results of one import of external issues into the tracked issue store."""

    def __init__(
        self,
        repository: str,
        requested_ids: list[int],
        matched_ids: list[int],
        inserted_ids: list[int],
        skipped_ids: list[int],
    ) -> None:
        """Initialize the result with the requested, matched, inserted and skipped issue numbers."""
        self.repository = repository
        self.requested_ids = requested_ids
        self.matched_ids = matched_ids
        self.inserted_ids = inserted_ids
        self.skipped_ids = skipped_ids

    @property
    def inserted_count(self) -> int:
        """Number of tracked issue records actually inserted."""
        return len(self.inserted_ids)

    def __repr__(self) -> str:
        """Summarize the result."""
        return (
            f"ImportResult(repository={self.repository!r}, requested={len(self.requested_ids)}, "
            f"matched={len(self.matched_ids)}, inserted={self.inserted_count}, skipped={len(self.skipped_ids)})"
        )
