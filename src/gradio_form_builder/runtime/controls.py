"""Live value holders compiled from a schema.

``ValueControl`` leaves hold one value plus its validators; ``ValueGroup``
nodes hold named children. Setting a leaf value notifies the leaf's own
listeners and then every ancestor group up to the root, synchronously, so a
listener on the root sees each edit before the setter returns.
"""

from typing import Any, Callable, Iterator, Mapping, Optional, Sequence, Union

from ..models.enums import ControlStatus
from .validators import ValidationErrors, ValidatorFn

ValueListener = Callable[[Any], None]


class ValueHolder:
    """Shared parent-link and listener plumbing of leaves and groups."""

    def __init__(self) -> None:
        self.parent: Optional["ValueGroup"] = None
        self._listeners: list[ValueListener] = []

    def subscribe(self, listener: ValueListener) -> Callable[[], None]:
        """Registers a callback receiving the holder's value on every change.

        Returns:
            A function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        value = self.value
        for listener in list(self._listeners):
            listener(value)
        if self.parent is not None:
            self.parent._emit()

    @property
    def value(self) -> Any:
        raise NotImplementedError  # pragma: no cover

    @property
    def enabled(self) -> bool:
        raise NotImplementedError  # pragma: no cover

    @property
    def disabled(self) -> bool:
        return not self.enabled

    @property
    def status(self) -> ControlStatus:
        raise NotImplementedError  # pragma: no cover

    @property
    def valid(self) -> bool:
        return self.status == ControlStatus.VALID


class ValueControl(ValueHolder):
    """A single runtime value with validators and an enabled flag."""

    def __init__(
        self,
        key: str,
        value: Any = None,
        validators: Optional[Sequence[ValidatorFn]] = None,
    ) -> None:
        super().__init__()
        self.key = key
        self._value = value
        self._enabled = True
        self.touched = False
        self.validators: list[ValidatorFn] = list(validators or [])

    @property
    def value(self) -> Any:
        return self._value

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def errors(self) -> Optional[ValidationErrors]:
        """Merged validator output, or None when valid or disabled."""
        if not self._enabled:
            return None
        merged: ValidationErrors = {}
        for validator in self.validators:
            result = validator(self._value)
            if result:
                merged.update(result)
        return merged or None

    @property
    def status(self) -> ControlStatus:
        if not self._enabled:
            return ControlStatus.DISABLED
        return ControlStatus.INVALID if self.errors else ControlStatus.VALID

    def has_error(self, code: str) -> bool:
        errors = self.errors
        return bool(errors) and code in errors

    def set_value(self, value: Any, *, emit_event: bool = True) -> None:
        self._value = value
        if emit_event:
            self._emit()

    def enable(self, *, emit_event: bool = True) -> None:
        self._enabled = True
        if emit_event:
            self._emit()

    def disable(self, *, emit_event: bool = True) -> None:
        self._enabled = False
        if emit_event:
            self._emit()

    def mark_as_touched(self) -> None:
        self.touched = True

    def __repr__(self) -> str:
        state = "enabled" if self._enabled else "disabled"
        return f"ValueControl({self.key!r}, {self._value!r}, {state})"


class ValueGroup(ValueHolder):
    """An ordered, named collection of leaves and nested groups.

    A group counts as enabled while it is empty or while at least one child
    is enabled. Its ``value`` only contains enabled children; ``raw_value``
    contains everything.
    """

    def __init__(self, controls: Optional[Mapping[str, ValueHolder]] = None) -> None:
        super().__init__()
        self.controls: dict[str, ValueHolder] = {}
        for name, control in (controls or {}).items():
            control.parent = self
            self.controls[name] = control

    @property
    def value(self) -> dict[str, Any]:
        return {
            name: control.value
            for name, control in self.controls.items()
            if control.enabled
        }

    @property
    def raw_value(self) -> dict[str, Any]:
        raw: dict[str, Any] = {}
        for name, control in self.controls.items():
            if isinstance(control, ValueGroup):
                raw[name] = control.raw_value
            else:
                raw[name] = control.value
        return raw

    @property
    def enabled(self) -> bool:
        if not self.controls:
            return True
        return any(control.enabled for control in self.controls.values())

    @property
    def status(self) -> ControlStatus:
        if not self.enabled:
            return ControlStatus.DISABLED
        for control in self.controls.values():
            if control.status == ControlStatus.INVALID:
                return ControlStatus.INVALID
        return ControlStatus.VALID

    def get(self, path: Union[str, Sequence[str]]) -> Optional[ValueHolder]:
        """Looks up a descendant.

        Args:
            path: A single child name, or a sequence of names walking down
                nested groups. Names are never split on dots, since control
                keys may contain them.

        Returns:
            The holder at that path, or None.
        """
        names = [path] if isinstance(path, str) else list(path)
        current: Optional[ValueHolder] = self
        for name in names:
            if not isinstance(current, ValueGroup):
                return None
            current = current.controls.get(name)
        return current

    def iter_leaves(self) -> Iterator[ValueControl]:
        for control in self.controls.values():
            if isinstance(control, ValueGroup):
                yield from control.iter_leaves()
            else:
                yield control

    def find_leaf(self, key: str) -> Optional[ValueControl]:
        """First leaf named ``key`` anywhere below this group."""
        for leaf in self.iter_leaves():
            if leaf.key == key:
                return leaf
        return None

    def patch_value(self, values: Mapping[str, Any], *, emit_event: bool = True) -> None:
        """Sets several values at once and notifies listeners a single time.

        Names that do not exist are ignored. Nested mappings are applied to
        nested groups.
        """
        for name, value in values.items():
            control = self.controls.get(name)
            if isinstance(control, ValueGroup) and isinstance(value, Mapping):
                control.patch_value(value, emit_event=False)
            elif isinstance(control, ValueControl):
                control.set_value(value, emit_event=False)
        if emit_event:
            self._emit()

    def errors_by_key(self) -> dict[str, ValidationErrors]:
        """Errors of every enabled, invalid leaf keyed by control key."""
        found: dict[str, ValidationErrors] = {}
        for leaf in self.iter_leaves():
            errors = leaf.errors
            if errors:
                found[leaf.key] = errors
        return found

    def mark_all_as_touched(self) -> None:
        for leaf in self.iter_leaves():
            leaf.mark_as_touched()
