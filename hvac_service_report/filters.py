"""
Replacement filter rows and the row editor used by unit drafts.
"""

# Standard Library
import dataclasses


FILTER_FIELDS = ("size", "quantity")


@dataclasses.dataclass(frozen=True)
class FilterEntry:
	size: str = ""
	quantity: str = ""

	def is_blank(self) -> bool:
		return not self.size.strip() or not self.quantity.strip()

	def display_text(self) -> str:
		return f"{self.quantity}x - {self.size}"


#============================================
def normalize_filter_value(value: object) -> str:
	"""
	Normalize a size or quantity input to the stored string form.

	Args:
		value: Raw input, for example "2", 2 or None.

	Returns:
		String value, empty for None.
	"""
	if value is None:
		return ""
	if isinstance(value, float) and value.is_integer():
		value = int(value)
	return str(value)


#============================================
def compact_filters(entries: list[FilterEntry] | tuple[FilterEntry, ...]) -> tuple[FilterEntry, ...]:
	"""
	Drop rows missing a size or a quantity.

	Args:
		entries: Filter rows in display order.

	Returns:
		Surviving rows, relative order preserved.
	"""
	return tuple(entry for entry in entries if not entry.is_blank())


class FilterListEditor:
	"""
	Ordered, editable list of filter rows.

	Rows may be blank while a draft is being edited. Blank rows are only
	removed by compact(), which a draft calls when it is committed.
	"""

	def __init__(self, entries: list[FilterEntry] | tuple[FilterEntry, ...] = ()):
		self._rows: list[FilterEntry] = list(entries)

	def __len__(self) -> int:
		return len(self._rows)

	def __iter__(self):
		return iter(list(self._rows))

	@property
	def rows(self) -> tuple[FilterEntry, ...]:
		return tuple(self._rows)

	def add_row(self) -> int:
		"""
		Append an empty row.

		Returns:
			Index of the new row.
		"""
		self._rows.append(FilterEntry())
		return len(self._rows) - 1

	def edit_row(self, index: int, field: str, value: object) -> FilterEntry:
		"""
		Set one field on a row.

		Args:
			index: Row index.
			field: "size" or "quantity".
			value: New value.

		Returns:
			The updated row.
		"""
		if field not in FILTER_FIELDS:
			raise ValueError(f"Unknown filter field: {field!r}")
		self._check_index(index)
		entry = dataclasses.replace(self._rows[index], **{field: normalize_filter_value(value)})
		self._rows[index] = entry
		return entry

	def remove_row(self, index: int) -> FilterEntry:
		self._check_index(index)
		return self._rows.pop(index)

	def compact(self) -> tuple[FilterEntry, ...]:
		return compact_filters(self._rows)

	def _check_index(self, index: int) -> None:
		# negative indices are not row positions
		if index < 0 or index >= len(self._rows):
			raise IndexError(f"Filter row {index} out of range (rows={len(self._rows)})")
