from __future__ import annotations

import csv
import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

import torch

from .errors import FactorizationFailure, InvalidDimension, InvalidInteraction


logger = logging.getLogger(__name__)

MatrixLike = Union[torch.Tensor, Sequence[float], Sequence[Sequence[float]]]
Interaction = Tuple[str, str, float]  # (user_id, item_id, value)

# The 5 users x 4 items example used by the CLI when no CSV is given.
SAMPLE_DATA: List[float] = [
    5, 3, 0, 1,
    4, 0, 0, 1,
    1, 1, 0, 5,
    1, 0, 0, 4,
    0, 1, 5, 4,
]
SAMPLE_ROWS, SAMPLE_COLS = 5, 4

_USER_KEYS = ["userId", "UserID", "User-ID", "user_id", "user"]
_ITEM_KEYS = ["itemId", "ItemID", "item_id", "item", "ISBN", "bookId", "BookID", "productId"]
_VALUE_KEYS = ["rating", "Rating", "Book-Rating", "book_rating", "score", "value", "count"]


def _is_row(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def build_interaction_matrix(
    data: MatrixLike,
    rows: int,
    cols: int,
    dtype: torch.dtype = torch.float64,
) -> torch.Tensor:
    """
    Turn caller data into a dense (rows, cols) interaction matrix.

    `data` is either flat row-major (len == rows * cols) or 2-D with shape (rows, cols).
    The caller's object is never modified; a fresh tensor is returned.

    Raises:
      - InvalidDimension: rows/cols <= 0, or data does not have the declared shape
      - InvalidInteraction: non-numeric or negative values
      - FactorizationFailure: NaN or infinite values
    """
    if not isinstance(rows, int) or not isinstance(cols, int) or rows <= 0 or cols <= 0:
        raise InvalidDimension(f"rows and cols must be positive integers, got rows={rows!r}, cols={cols!r}")

    if isinstance(data, torch.Tensor):
        matrix = data.detach().to(dtype=dtype).clone()
    else:
        if any(_is_row(row) for row in data):
            if len(data) != rows or any(not _is_row(row) or len(row) != cols for row in data):
                raise InvalidDimension(f"2-D data does not have shape ({rows}, {cols})")
        try:
            matrix = torch.tensor(data, dtype=dtype)
        except (TypeError, ValueError) as exc:
            raise InvalidInteraction(f"Interaction data is not numeric: {exc}") from exc

    if matrix.dim() == 1:
        if matrix.numel() != rows * cols:
            raise InvalidDimension(f"Flat data has {matrix.numel()} values, expected {rows} x {cols} = {rows * cols}")
        matrix = matrix.reshape(rows, cols)
    elif matrix.dim() != 2 or tuple(matrix.shape) != (rows, cols):
        raise InvalidDimension(f"Data of shape {tuple(matrix.shape)} does not match ({rows}, {cols})")

    if not torch.isfinite(matrix).all():
        raise FactorizationFailure("Interaction data contains NaN or infinite values")
    if (matrix < 0).any():
        raise InvalidInteraction("Interaction values must be non-negative")

    return matrix


def _open_csv(f) -> csv.DictReader:
    """DictReader with delimiter detection; falls back to excel dialect."""
    sample = f.read(4096)
    f.seek(0)
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",;\t|")
    except csv.Error:
        dialect = csv.excel
    return csv.DictReader(f, dialect=dialect)


def _normalize_field(row: dict, keys: List[str]) -> Optional[str]:
    for k in keys:
        if k in row:
            return row[k]
    # case-insensitive lookup
    lower_map = {k.lower(): k for k in row.keys() if k is not None}
    for k in keys:
        if k.lower() in lower_map:
            return row[lower_map[k.lower()]]
    return None


def _read_interactions(path: str) -> Iterator[Interaction]:
    # Try utf-8 first, fallback to latin-1
    for enc in ("utf-8", "latin-1"):
        try:
            with open(path, "r", encoding=enc, newline="") as f:
                rows = list(_open_csv(f))
            break
        except UnicodeDecodeError:
            logger.debug("Could not decode %s as %s", path, enc)
    else:
        raise InvalidInteraction(f"Could not decode CSV: {path}")

    skipped = 0
    for row in rows:
        user_raw = _normalize_field(row, _USER_KEYS)
        item_raw = _normalize_field(row, _ITEM_KEYS)
        value_raw = _normalize_field(row, _VALUE_KEYS)
        if user_raw is None or item_raw is None or value_raw is None:
            skipped += 1
            continue
        user_id, item_id = str(user_raw).strip(), str(item_raw).strip()
        try:
            value = float(str(value_raw).strip())
        except ValueError:
            skipped += 1
            continue
        if not user_id or not item_id:
            skipped += 1
            continue
        yield user_id, item_id, value

    if skipped:
        logger.warning("Skipped %d row(s) without usable user/item/value fields in %s", skipped, path)


@dataclass
class InteractionMatrix:
    """
    Loads a dense user-item matrix from a CSV of interactions, one per row,
    with columns like [userId, itemId, rating].

    Builds:
      - R: (num_users, num_items) tensor, 0 where no interaction was recorded
      - id <-> index maps in first-seen order

    A repeated (user, item) pair keeps the last value.
    """

    csv_path: str
    dtype: torch.dtype = torch.float64

    def __post_init__(self) -> None:
        self.user_id_to_index: Dict[str, int] = {}
        self.item_id_to_index: Dict[str, int] = {}
        self.index_to_user_id: List[str] = []
        self.index_to_item_id: List[str] = []

        interactions = list(_read_interactions(self.csv_path))
        if len(interactions) == 0:
            raise InvalidDimension(f"No interactions found in {self.csv_path}")

        for user_id, item_id, value in interactions:
            if not math.isfinite(value):
                raise FactorizationFailure(f"Non-finite value for user {user_id!r}, item {item_id!r}")
            if value < 0:
                raise InvalidInteraction(f"Negative value {value} for user {user_id!r}, item {item_id!r}")
            if user_id not in self.user_id_to_index:
                self.user_id_to_index[user_id] = len(self.index_to_user_id)
                self.index_to_user_id.append(user_id)
            if item_id not in self.item_id_to_index:
                self.item_id_to_index[item_id] = len(self.index_to_item_id)
                self.index_to_item_id.append(item_id)

        self.num_users = len(self.index_to_user_id)
        self.num_items = len(self.index_to_item_id)

        self.R = torch.zeros((self.num_users, self.num_items), dtype=self.dtype)
        for user_id, item_id, value in interactions:
            self.R[self.user_id_to_index[user_id], self.item_id_to_index[item_id]] = value

        logger.debug("Loaded %d interaction(s): %d users x %d items", len(interactions), self.num_users, self.num_items)
