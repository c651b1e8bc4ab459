"""Keyboard keys and modifier bitmask helpers for Input.dispatchKeyEvent."""

from __future__ import annotations

from enum import Enum

# Modifier bits as used by Input.dispatchKeyEvent / dispatchMouseEvent
MODIFIER_BITS = {
    'Alt': 1,
    'Control': 2,
    'Meta': 4,
    'Shift': 8,
}


class Key(int, Enum):
    """A keyboard key, valued by its Windows virtual-key code."""

    Backspace = 8
    Tab = 9
    Enter = 13
    Shift = 16
    Control = 17
    Alt = 18
    Escape = 27
    Space = 32
    PageUp = 33
    PageDown = 34
    End = 35
    Home = 36
    ArrowLeft = 37
    ArrowUp = 38
    ArrowRight = 39
    ArrowDown = 40
    Insert = 45
    Delete = 46
    Digit0 = 48
    Digit1 = 49
    Digit2 = 50
    Digit3 = 51
    Digit4 = 52
    Digit5 = 53
    Digit6 = 54
    Digit7 = 55
    Digit8 = 56
    Digit9 = 57
    KeyA = 65
    KeyB = 66
    KeyC = 67
    KeyD = 68
    KeyE = 69
    KeyF = 70
    KeyG = 71
    KeyH = 72
    KeyI = 73
    KeyJ = 74
    KeyK = 75
    KeyL = 76
    KeyM = 77
    KeyN = 78
    KeyO = 79
    KeyP = 80
    KeyQ = 81
    KeyR = 82
    KeyS = 83
    KeyT = 84
    KeyU = 85
    KeyV = 86
    KeyW = 87
    KeyX = 88
    KeyY = 89
    KeyZ = 90
    Meta = 91
    F1 = 112
    F2 = 113
    F3 = 114
    F4 = 115
    F5 = 116
    F6 = 117
    F7 = 118
    F8 = 119
    F9 = 120
    F10 = 121
    F11 = 122
    F12 = 123

    @property
    def modifier(self) -> int:
        """Bit this key contributes to the modifier mask, 0 for non-modifiers."""
        return MODIFIER_BITS.get(self.name, 0)

    @property
    def is_modifier(self) -> bool:
        return self.modifier != 0

    @property
    def code(self) -> str:
        """Physical key code, e.g. ``KeyA`` or ``ShiftLeft``."""
        if self.is_modifier:
            return f'{self.name}Left'
        return self.name

    @property
    def key(self) -> str:
        """Logical key value as reported by ``KeyboardEvent.key``."""
        if self is Key.Space:
            return ' '
        if self.name.startswith('Digit') or self.name.startswith('Key'):
            return self.text
        return self.name

    @property
    def text(self) -> str:
        """Text produced by the key without modifiers, empty for non-printing keys."""
        if self is Key.Space:
            return ' '
        if self.name.startswith('Digit'):
            return self.name[len('Digit'):]
        if self.name.startswith('Key'):
            return self.name[len('Key'):].lower()
        if self is Key.Enter:
            return '\r'
        return ''

    def text_with_modifiers(self, modifiers: int) -> str:
        """Text produced while ``modifiers`` are held; Shift upper-cases letters."""
        text = self.text
        if modifiers & MODIFIER_BITS['Shift'] and self.name.startswith('Key'):
            return text.upper()
        return text

    @classmethod
    def for_character(cls, char: str) -> Key | None:
        """Return the key that types ``char``, for ASCII letters and digits only."""
        if len(char) != 1 or not char.isascii():
            return None
        if char.isdigit():
            return cls[f'Digit{char}']
        if char.isalpha():
            return cls[f'Key{char.upper()}']
        return None

    @classmethod
    def from_name(cls, name: str) -> Key:
        """Look up a key by member name, case-insensitively, accepting single characters too.

        Raises:
            ValueError: No key matches ``name``.
        """
        if name in cls.__members__:
            return cls[name]
        by_lower = {member.lower(): member for member in cls.__members__}
        if name.lower() in by_lower:
            return cls[by_lower[name.lower()]]
        key = cls.for_character(name)
        if key is None:
            raise ValueError(f'Unknown key: {name!r}')
        return key
