"""
Flipbook - Control Mapping
Control symbols, their actions, and the jump/info option objects.

Symbols are plain strings (emoji or button labels) or numeric custom ids.
An action whose symbol is None is disabled: it gets no control attached
and events carrying its old symbol are ignored.
"""

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

import config
from pagination.errors import ConfigurationError, ConfigurationErrorKind

Symbol = Union[str, int]


class ControlAction(Enum):
    """Actions a viewer can request."""
    FRONT = "front"
    BACK = "back"
    NEXT = "next"
    REAR = "rear"
    STOP = "stop"
    JUMP = "jump"
    TRASH = "trash"
    INFO = "info"


# Order in which controls are attached to the message
ATTACH_ORDER = (
    ControlAction.FRONT,
    ControlAction.BACK,
    ControlAction.NEXT,
    ControlAction.REAR,
    ControlAction.JUMP,
    ControlAction.INFO,
    ControlAction.STOP,
    ControlAction.TRASH,
)


@dataclass(frozen=True)
class ControlSymbolMap:
    """
    Symbol for each control action.

    back and next are mandatory; every other action is optional.
    Build variants with with_overrides() rather than mutating.
    """
    front: Optional[Symbol] = config.DEFAULT_CONTROL_SYMBOLS["front"]
    back: Optional[Symbol] = config.DEFAULT_CONTROL_SYMBOLS["back"]
    next: Optional[Symbol] = config.DEFAULT_CONTROL_SYMBOLS["next"]
    rear: Optional[Symbol] = config.DEFAULT_CONTROL_SYMBOLS["rear"]
    stop: Optional[Symbol] = config.DEFAULT_CONTROL_SYMBOLS["stop"]
    jump: Optional[Symbol] = None
    trash: Optional[Symbol] = None
    info: Optional[Symbol] = None

    def with_overrides(self, overrides: Optional[Mapping[str, Optional[Symbol]]] = None) -> "ControlSymbolMap":
        """
        Return a copy with some symbols replaced.

        Args:
            overrides: Action name -> symbol (None disables the action)

        Raises:
            ConfigurationError: If an override names an unknown action
        """
        if not overrides:
            return self

        known = {item.name for item in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigurationError(
                ConfigurationErrorKind.INVALID_OPTION,
                f"unknown control action(s): {', '.join(unknown)}",
            )
        return replace(self, **dict(overrides))

    def symbol_for(self, action: ControlAction) -> Optional[Symbol]:
        return getattr(self, action.value)

    def validate(self) -> None:
        """
        Check that the mandatory symbols are set.

        Raises:
            ConfigurationError: If back or next is missing
        """
        for action in (ControlAction.BACK, ControlAction.NEXT):
            symbol = self.symbol_for(action)
            if not isinstance(symbol, (str, int)) or isinstance(symbol, bool) or symbol == "":
                raise ConfigurationError(
                    ConfigurationErrorKind.MISSING_SYMBOL,
                    f"symbols must define '{action.value}' as a string or numeric id",
                )


@dataclass(frozen=True)
class JumpOptions:
    """
    Settings for the jump-to-page control.

    Attributes:
        prompt: Message asking for a page number (None sends no prompt)
        timeout: Seconds to wait for the viewer's reply
        delete_prompt: Delete the prompt message afterwards
        delete_reply: Delete the viewer's reply afterwards
    """
    prompt: Optional[str] = config.JUMP_PROMPT
    timeout: float = config.JUMP_TIMEOUT
    delete_prompt: bool = config.JUMP_DELETE_PROMPT
    delete_reply: bool = config.JUMP_DELETE_REPLY

    def with_overrides(self, overrides: Optional[Mapping[str, Any]] = None) -> "JumpOptions":
        return _overlay(self, overrides, "jump")

    def validate(self) -> None:
        if self.prompt is not None and not isinstance(self.prompt, str):
            _invalid("jump.prompt must be a string or None")
        if not _is_positive_number(self.timeout):
            _invalid("jump.timeout must be a positive number of seconds")


@dataclass(frozen=True)
class InfoOptions:
    """
    Settings for the info/help control.

    Attributes:
        text: Help message to send
        delete_after: Seconds before the help message is deleted (None keeps it)
    """
    text: str = config.INFO_TEXT
    delete_after: Optional[float] = config.INFO_DELETE_AFTER

    def with_overrides(self, overrides: Optional[Mapping[str, Any]] = None) -> "InfoOptions":
        return _overlay(self, overrides, "info")

    def validate(self) -> None:
        if not isinstance(self.text, str) or not self.text.strip():
            _invalid("info.text must be a non-empty string")
        if self.delete_after is not None and not _is_positive_number(self.delete_after):
            _invalid("info.delete_after must be a positive number of seconds or None")


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _invalid(detail: str) -> None:
    raise ConfigurationError(ConfigurationErrorKind.INVALID_OPTION, detail)


def _overlay(options, overrides: Optional[Mapping[str, Any]], label: str):
    if not overrides:
        return options
    known = {item.name for item in fields(options)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        _invalid(f"unknown {label} option(s): {', '.join(unknown)}")
    return replace(options, **dict(overrides))


class ControlMapping:
    """
    Resolves inbound symbols to actions for one session.

    The stop control is only enabled when the paginator is stoppable.
    """

    def __init__(self, symbols: ControlSymbolMap, stoppable: bool = False):
        self.symbols = symbols
        self.stoppable = stoppable

        self._by_symbol: Dict[str, ControlAction] = {}
        for action, symbol in self.enabled():
            # First action wins if two share a symbol
            self._by_symbol.setdefault(_key(symbol), action)

    def enabled(self) -> List[Tuple[ControlAction, Symbol]]:
        """Enabled (action, symbol) pairs in attachment order."""
        pairs = []
        for action in ATTACH_ORDER:
            if action is ControlAction.STOP and not self.stoppable:
                continue
            symbol = self.symbols.symbol_for(action)
            if symbol is None or symbol == "":
                continue
            pairs.append((action, symbol))
        return pairs

    def symbol_set(self) -> FrozenSet[str]:
        """Keys of every enabled symbol, for event filtering."""
        return frozenset(self._by_symbol)

    def resolve(self, symbol: Optional[Symbol]) -> Optional[ControlAction]:
        """Action bound to a symbol, or None if it is not an enabled control."""
        if symbol is None:
            return None
        return self._by_symbol.get(_key(symbol))


def _key(symbol: Symbol) -> str:
    # Custom ids may arrive as ints or strings depending on the transport
    return str(symbol)
