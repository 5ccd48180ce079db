"""
Tracking Collection Manager.
Validates tracking numbers and manages the ordered list attached to an order.
"""

import re
from typing import Optional
from urllib.parse import quote
from loguru import logger

from usps_tracking.config import TrackingConfig, DEFAULT_TRACKING_URL_TEMPLATE
from usps_tracking.models import BulkAddResult, ErrorKind, ERROR_MESSAGES
from usps_tracking.tracking.service_types import detect_service_type


class TrackingError(Exception):
    """Base exception for recoverable tracking collection errors."""

    kind: ErrorKind

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or ERROR_MESSAGES[self.kind])


class EmptyInputError(TrackingError):
    """Raised when no tracking number was supplied."""
    kind = ErrorKind.EMPTY_INPUT


class InvalidFormatError(TrackingError):
    """Raised when a tracking number is not 20-22 alphanumeric characters."""
    kind = ErrorKind.INVALID_FORMAT


class DuplicateTrackingError(TrackingError):
    """Raised when the order already has the tracking number."""
    kind = ErrorKind.DUPLICATE


class IndexNotFoundError(TrackingError):
    """Raised when there is no tracking number at the given position."""
    kind = ErrorKind.INDEX_NOT_FOUND


class TrackingCollectionManager:
    """
    Operations over the tracking numbers attached to one order.

    Every operation takes the current collection and returns a new one;
    the caller persists the result. Input lists are never mutated, so a
    failed operation leaves the caller's collection as it was.

    Features:
    - Normalization (whitespace/hyphens removed, uppercased)
    - 20-22 character alphanumeric validation
    - Bulk parsing of newline, comma, or space separated input
    - Best-effort bulk add with per-item diagnostics
    """

    SEPARATORS = re.compile(r"[\s\-]")
    VALID_PATTERN = re.compile(r"[A-Z0-9]{20,22}")
    BULK_DELIMITERS = re.compile(r"[\r\n,\s]+")

    def __init__(self, config: Optional[TrackingConfig] = None):
        self.config = config
        self.tracking_url_template = (
            config.tracking_url_template if config else DEFAULT_TRACKING_URL_TEMPLATE
        )

    def normalize(self, raw: str) -> str:
        """Strip whitespace and hyphens, then uppercase."""
        return self.SEPARATORS.sub("", raw).upper()

    def validate(self, raw: str) -> bool:
        """
        Check a tracking number against the USPS format.

        Only length and character set are enforced. The service type
        prefix is logged when recognised but never affects the result.

        Args:
            raw: Tracking number as entered

        Returns:
            True if the normalized number is 20-22 letters/digits
        """
        number = self.normalize(raw)

        if not self.VALID_PATTERN.fullmatch(number):
            return False

        service = detect_service_type(number)
        if service:
            logger.debug(f"Tracking number {number} looks like {service}")
        else:
            logger.debug(f"Tracking number {number} has an unrecognised prefix")

        return True

    def add_one(self, collection: list[str], raw: str) -> list[str]:
        """
        Add a single tracking number.

        Args:
            collection: Current tracking numbers for the order
            raw: Tracking number as entered

        Returns:
            New collection with the normalized number appended

        Raises:
            EmptyInputError: Input is blank
            InvalidFormatError: Input fails validation
            DuplicateTrackingError: Normalized number already present
        """
        if not raw or not raw.strip():
            raise EmptyInputError()

        if not self.validate(raw):
            raise InvalidFormatError()

        number = self.normalize(raw)

        if number in collection:
            raise DuplicateTrackingError()

        return [*collection, number]

    def parse_bulk(self, raw: str) -> list[str]:
        """
        Split a block of text into candidate tracking numbers.

        Tokens are separated by any run of newlines, commas, or whitespace.
        Order is preserved and duplicates are kept; they are resolved
        against the collection in add_bulk.
        """
        if not raw:
            return []

        tokens = (token.strip() for token in self.BULK_DELIMITERS.split(raw))
        return [token for token in tokens if token]

    def add_bulk(self, collection: list[str], raw: str) -> tuple[list[str], BulkAddResult]:
        """
        Add every valid, new tracking number from a block of text.

        Problems with individual tokens are counted and reported in the
        result; they never stop the rest of the batch.

        Args:
            collection: Current tracking numbers for the order
            raw: Bulk input text

        Returns:
            Tuple of (new collection, BulkAddResult)

        Raises:
            EmptyInputError: Input is blank or contains no tokens
        """
        if not raw or not raw.strip():
            raise EmptyInputError()

        tokens = self.parse_bulk(raw)
        if not tokens:
            raise EmptyInputError()

        working = list(collection)
        result = BulkAddResult()

        for token in tokens:
            if not self.validate(token):
                result.invalid += 1
                result.errors.append(f"Invalid format: {token}")
                continue

            number = self.normalize(token)

            if number in working:
                result.skipped += 1
                result.errors.append(f"Already exists: {token}")
                continue

            working.append(number)
            result.added += 1

        logger.debug(
            f"Bulk add: {result.added} added, {result.skipped} skipped, "
            f"{result.invalid} invalid from {len(tokens)} tokens"
        )

        return working, result

    def delete_at(self, collection: list[str], index: int) -> list[str]:
        """
        Remove the tracking number at a position.

        Later entries shift down by one, so indices stay contiguous from 0.

        Raises:
            IndexNotFoundError: Index is negative or past the end
        """
        if index < 0 or index >= len(collection):
            raise IndexNotFoundError()

        return [*collection[:index], *collection[index + 1:]]

    def list_entries(self, collection: list[str]) -> list[tuple[int, str]]:
        """Pair each tracking number with its current index."""
        return list(enumerate(collection))

    def tracking_url(self, number: str) -> str:
        """Build the USPS lookup URL for a tracking number."""
        return self.tracking_url_template.format(number=quote(number, safe=""))
