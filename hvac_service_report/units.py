"""
Unit records, editable drafts and the ordered unit collection.
"""

# Standard Library
import dataclasses
import enum
import threading
import typing
import uuid

# local repo modules
import hvac_service_report as hsr
import hvac_service_report.errors
import hvac_service_report.filters


FilterEntry = hsr.filters.FilterEntry
FilterListEditor = hsr.filters.FilterListEditor
ValidationError = hsr.errors.ValidationError
NotFoundError = hsr.errors.NotFoundError

TEXT_FIELDS = ("location", "area_served", "model_number", "serial_number")


class DriveType(enum.Enum):
	BELT = "belt"
	DIRECT_DRIVE = "dd"

	@property
	def label(self) -> str:
		if self is DriveType.DIRECT_DRIVE:
			return "Direct Drive"
		return "Belt Drive"


@dataclasses.dataclass(frozen=True)
class UnitRecord:
	id: str
	location: str
	area_served: str = ""
	model_number: str = ""
	serial_number: str = ""
	drive_type: DriveType = DriveType.BELT
	economizer: bool = False
	filters: tuple[FilterEntry, ...] = ()
	images: tuple[str, ...] = ()


#============================================
def generate_unit_id() -> str:
	"""
	Generate a new unit id.

	Returns:
		Random hex id.
	"""
	return uuid.uuid4().hex


#============================================
def parse_drive_type(value: object) -> DriveType:
	"""
	Parse a drive type from an enum member or its stored value.

	Args:
		value: DriveType, "belt" or "dd".

	Returns:
		DriveType.
	"""
	if isinstance(value, DriveType):
		return value
	try:
		return DriveType(str(value).strip().lower())
	except ValueError as error:
		raise ValidationError(f"Unknown drive type: {value!r}") from error


#============================================
def parse_economizer(value: object) -> bool:
	"""
	Parse an economizer flag from a bool or a yes/no answer.

	Args:
		value: Bool, "yes" or "no".

	Returns:
		True when the unit has an economizer.
	"""
	if isinstance(value, bool):
		return value
	normalized = str(value).strip().lower()
	if normalized in ("yes", "y", "true", "1"):
		return True
	if normalized in ("no", "n", "false", "0", ""):
		return False
	raise ValidationError(f"Unknown economizer value: {value!r}")


#============================================
def require_location(location: str) -> str:
	"""
	Check that a unit location was supplied.

	Args:
		location: Location text.

	Returns:
		The location, unchanged.
	"""
	if not location or not location.strip():
		raise ValidationError("Please provide a location for the unit.")
	return location


#============================================
def new_unit(
	location: str,
	area_served: str = "",
	model_number: str = "",
	serial_number: str = "",
	drive_type: object = DriveType.BELT,
	economizer: object = False,
	filters: list[FilterEntry] | tuple[FilterEntry, ...] = (),
	images: list[str] | tuple[str, ...] = (),
) -> UnitRecord:
	"""
	Create a committed unit record with a fresh id.

	Blank filter rows are dropped.

	Args:
		location: Unit location, required.
		area_served: Area served.
		model_number: Model number.
		serial_number: Serial number.
		drive_type: Drive type.
		economizer: Economizer flag.
		filters: Filter rows.
		images: Portable image strings.

	Returns:
		UnitRecord.
	"""
	require_location(location)
	return UnitRecord(
		id=generate_unit_id(),
		location=location,
		area_served=area_served or "",
		model_number=model_number or "",
		serial_number=serial_number or "",
		drive_type=parse_drive_type(drive_type),
		economizer=parse_economizer(economizer),
		filters=hsr.filters.compact_filters(filters),
		images=tuple(images),
	)


class UnitDraft:
	"""
	Discardable editing buffer for a unit.

	A draft never touches the committed record it was copied from;
	commit() builds a whole new UnitRecord which the caller then stores.
	"""

	def __init__(
		self,
		unit_id: str | None = None,
		location: str = "",
		area_served: str = "",
		model_number: str = "",
		serial_number: str = "",
		drive_type: object = DriveType.BELT,
		economizer: object = False,
		filters: list[FilterEntry] | tuple[FilterEntry, ...] = (),
		images: list[str] | tuple[str, ...] = (),
	):
		self.unit_id = unit_id
		self.location = location
		self.area_served = area_served
		self.model_number = model_number
		self.serial_number = serial_number
		self.drive_type = parse_drive_type(drive_type)
		self.economizer = parse_economizer(economizer)
		self.filters = FilterListEditor(filters)
		self.images: list[str] = list(images)

	@classmethod
	def for_new_unit(cls) -> "UnitDraft":
		draft = cls()
		draft.add_filter_row()
		return draft

	@classmethod
	def from_record(cls, record: UnitRecord) -> "UnitDraft":
		return cls(
			unit_id=record.id,
			location=record.location,
			area_served=record.area_served,
			model_number=record.model_number,
			serial_number=record.serial_number,
			drive_type=record.drive_type,
			economizer=record.economizer,
			filters=record.filters,
			images=record.images,
		)

	def set_field(self, name: str, value: object) -> None:
		"""
		Set a scalar field from form input.

		Args:
			name: Field name.
			value: New value.
		"""
		if name in TEXT_FIELDS:
			setattr(self, name, "" if value is None else str(value))
		elif name == "drive_type":
			self.drive_type = parse_drive_type(value)
		elif name == "economizer":
			self.economizer = parse_economizer(value)
		else:
			raise ValueError(f"Unknown unit field: {name!r}")

	def add_filter_row(self) -> int:
		return self.filters.add_row()

	def edit_filter_row(self, index: int, field: str, value: object) -> FilterEntry:
		return self.filters.edit_row(index, field, value)

	def remove_filter_row(self, index: int) -> FilterEntry:
		return self.filters.remove_row(index)

	def add_images(self, images: list[str]) -> None:
		self.images.extend(images)

	def remove_image(self, index: int) -> str:
		if index < 0 or index >= len(self.images):
			raise IndexError(f"Image {index} out of range (images={len(self.images)})")
		return self.images.pop(index)

	def commit(self) -> UnitRecord:
		"""
		Build the committed record for this draft.

		New drafts get a fresh id; drafts copied from a record keep its id.

		Returns:
			UnitRecord with blank filter rows removed.
		"""
		require_location(self.location)
		unit_id = self.unit_id
		if unit_id is None:
			unit_id = generate_unit_id()
		return UnitRecord(
			id=unit_id,
			location=self.location,
			area_served=self.area_served,
			model_number=self.model_number,
			serial_number=self.serial_number,
			drive_type=self.drive_type,
			economizer=self.economizer,
			filters=self.filters.compact(),
			images=tuple(self.images),
		)


class UnitCollection:
	"""
	Units in insertion order, addressed by id.
	"""

	def __init__(self, units: list[UnitRecord] | tuple[UnitRecord, ...] = ()):
		self._units: list[UnitRecord] = []
		self._lock = threading.RLock()
		for unit in units:
			self.add(unit)

	def __len__(self) -> int:
		with self._lock:
			return len(self._units)

	def __iter__(self):
		return iter(self.snapshot())

	def __contains__(self, unit_id: object) -> bool:
		return self.find(unit_id) is not None

	def ids(self) -> list[str]:
		return [unit.id for unit in self.snapshot()]

	def snapshot(self) -> tuple[UnitRecord, ...]:
		"""
		Return a point-in-time copy of the units.

		Records are immutable, so later edits to the collection cannot
		change a snapshot already taken.

		Returns:
			Tuple of UnitRecord in collection order.
		"""
		with self._lock:
			return tuple(self._units)

	def find(self, unit_id: object) -> UnitRecord | None:
		with self._lock:
			for unit in self._units:
				if unit.id == unit_id:
					return unit
		return None

	def get(self, unit_id: str) -> UnitRecord:
		unit = self.find(unit_id)
		if unit is None:
			raise NotFoundError(f"No unit with id {unit_id!r}")
		return unit

	def add(self, unit: UnitRecord) -> UnitRecord:
		"""
		Append a unit.

		Args:
			unit: Committed record; its location was validated on creation.

		Returns:
			The stored record.
		"""
		with self._lock:
			for existing in self._units:
				if existing.id == unit.id:
					raise ValueError(f"Duplicate unit id {unit.id!r}")
			self._units.append(unit)
		return unit

	def update(self, unit_id: str, unit: UnitRecord) -> bool:
		"""
		Replace the whole record for an id, keeping its position.

		Args:
			unit_id: Id of the record to replace.
			unit: Full replacement record.

		Returns:
			True if a record was replaced, False if the id was absent.
		"""
		if unit.id != unit_id:
			raise ValueError(f"Replacement id {unit.id!r} does not match {unit_id!r}")
		with self._lock:
			for index, existing in enumerate(self._units):
				if existing.id == unit_id:
					self._units[index] = unit
					return True
		return False

	def modify(
		self,
		unit_id: str,
		change: typing.Callable[[UnitRecord], UnitRecord],
	) -> UnitRecord | None:
		"""
		Replace a record with a new record derived from its current value.

		The read and the replacement happen under one lock, so the change
		is never applied to a stale copy.

		Args:
			unit_id: Id of the record to change.
			change: Function building the replacement from the current record.

		Returns:
			The stored replacement, or None if the id was absent.
		"""
		with self._lock:
			for index, existing in enumerate(self._units):
				if existing.id != unit_id:
					continue
				unit = change(existing)
				if unit.id != unit_id:
					raise ValueError(f"Replacement id {unit.id!r} does not match {unit_id!r}")
				self._units[index] = unit
				return unit
		return None

	def delete(self, unit_id: str) -> bool:
		with self._lock:
			for index, existing in enumerate(self._units):
				if existing.id == unit_id:
					del self._units[index]
					return True
		return False
