from __future__ import annotations

import os
import shutil
import sys
from dataclasses import dataclass
from typing import Literal, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class SelectorOption[T]:
    value: T
    label: str
    detail: str | None = None
    disabled: bool = False


@dataclass(frozen=True, slots=True)
class SelectorResult[T]:
    action: Literal["select", "cancel"]
    value: T | None
    index: int


@dataclass(frozen=True, slots=True)
class MultiSelectResult[T]:
    action: Literal["select", "cancel"]
    values: tuple[T, ...]


def is_interactive_terminal() -> bool:
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _color_enabled() -> bool:
    if not is_interactive_terminal():
        return False
    if os.getenv("NO_COLOR") is not None:
        return False
    term = os.getenv("TERM", "")
    return term.lower() != "dumb"


def _paint(text: str, *codes: str) -> str:
    if not _color_enabled() or not codes:
        return text
    return f"\x1b[{';'.join(codes)}m{text}\x1b[0m"


def _clear() -> None:
    sys.stdout.write("\x1b[2J\x1b[H")


def _read_key() -> str:
    if os.name == "nt":
        import msvcrt

        ch = msvcrt.getwch()
        if ch in ("\r", "\n"):
            return "enter"
        if ch == " ":
            return "space"
        if ch in ("a", "A"):
            return "all"
        if ch in ("q", "Q", "\x03"):
            return "cancel"
        if ch in ("\x00", "\xe0"):
            ch2 = msvcrt.getwch()
            if ch2 == "H":
                return "up"
            if ch2 == "P":
                return "down"
            return "other"
        return "other"

    import termios
    import tty

    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        ch = sys.stdin.read(1)
        if ch in ("\r", "\n"):
            return "enter"
        if ch == " ":
            return "space"
        if ch in ("a", "A"):
            return "all"
        if ch in ("q", "Q", "\x03"):
            return "cancel"
        if ch == "\x1b":
            c2 = sys.stdin.read(1)
            if c2 == "[":
                c3 = sys.stdin.read(1)
                if c3 == "A":
                    return "up"
                if c3 == "B":
                    return "down"
            return "cancel"
        return "other"
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)


def _truncate(text: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."


def _pad(text: str, width: int) -> str:
    return _truncate(text, width).ljust(width)


def _cols() -> int:
    return max(72, min(140, shutil.get_terminal_size((100, 30)).columns))


def _line(widths: list[int]) -> str:
    return "+" + "+".join("-" * (w + 2) for w in widths) + "+"


def _row(cells: list[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def _print_header(*, title: str, subtitle: str | None) -> None:
    print(_paint(title, "1", "96"))
    if subtitle is not None:
        print(_paint(subtitle, "2", "37"))
    print()


def _style_selected(text: str) -> str:
    return _paint(text, "1", "30", "46")


def _render_table(
    *,
    options: list[SelectorOption[object]],
    index: int,
    marks: list[str] | None,
) -> None:
    cols = _cols()
    idx_w = 4
    option_w = max(20, min(44, int(cols * 0.38)))
    detail_w = max(18, cols - (idx_w + option_w + 10))
    widths = [idx_w, option_w, detail_w]

    print(_line(widths))
    print(
        _row(
            [
                _paint(_pad("Sel", idx_w), "1", "95"),
                _paint(_pad("Option", option_w), "1", "95"),
                _paint(_pad("Details", detail_w), "1", "95"),
            ]
        )
    )
    print(_line(widths))

    for i, opt in enumerate(options):
        if marks is not None:
            marker = f"{'>' if i == index else ' '}{marks[i]}"
        else:
            marker = f">>{i + 1:02d}" if i == index else f"  {i + 1:02d}"
        c1 = _pad(marker, idx_w)
        c2 = _pad(opt.label.strip(), option_w)
        c3 = _pad((opt.detail or "").strip(), detail_w)

        if i == index:
            print(_row([_style_selected(c1), _style_selected(c2), _style_selected(c3)]))
        elif opt.disabled:
            print(_row([_paint(c1, "2"), _paint(c2, "2"), _paint(c3, "2")]))
        else:
            print(
                _row(
                    [
                        _paint(c1, "36"),
                        _paint(c2, "97"),
                        _paint(c3, "2", "37"),
                    ]
                )
            )

    print(_line(widths))


def _render(
    *,
    title: str,
    subtitle: str | None,
    options: list[SelectorOption[object]],
    index: int,
    marks: list[str] | None = None,
) -> None:
    _clear()
    _print_header(title=title, subtitle=subtitle)
    _render_table(options=options, index=index, marks=marks)

    print()
    if marks is None:
        keys_line = (
            _paint("Keys:", "1", "96")
            + " "
            + _paint("Up/Down", "1", "97")
            + " + Enter, "
            + _paint("q", "1", "97")
            + ": cancel"
        )
    else:
        keys_line = (
            _paint("Keys:", "1", "96")
            + " "
            + _paint("Space", "1", "97")
            + ": toggle, "
            + _paint("a", "1", "97")
            + ": all/none, "
            + _paint("Enter", "1", "97")
            + ": confirm, "
            + _paint("q", "1", "97")
            + ": cancel"
        )
    print(keys_line)
    sys.stdout.flush()


def _erase[T](options: list[SelectorOption[T]]) -> list[SelectorOption[object]]:
    return [
        SelectorOption(value=o.value, label=o.label, detail=o.detail, disabled=o.disabled)
        for o in options
    ]


def select_one[T](
    *,
    title: str,
    options: list[SelectorOption[T]],
    subtitle: str | None = None,
    initial_index: int = 0,
) -> SelectorResult[T]:
    if not options:
        raise ValueError("selector requires at least one option")
    if not is_interactive_terminal():
        raise RuntimeError("interactive selector requires a TTY")

    idx = max(0, min(initial_index, len(options) - 1))
    casted = _erase(options)

    while True:
        _render(title=title, subtitle=subtitle, options=casted, index=idx)
        key = _read_key()

        if key == "up":
            idx = (idx - 1) % len(options)
            continue
        if key == "down":
            idx = (idx + 1) % len(options)
            continue
        if key == "enter":
            chosen = options[idx]
            return SelectorResult(action="select", value=chosen.value, index=idx)
        if key == "cancel":
            return SelectorResult(action="cancel", value=None, index=idx)


def select_many[T](
    *,
    title: str,
    options: list[SelectorOption[T]],
    subtitle: str | None = None,
) -> MultiSelectResult[T]:
    """Checkbox list. Every enabled row starts checked; disabled rows stay off."""
    if not options:
        raise ValueError("selector requires at least one option")
    if not is_interactive_terminal():
        raise RuntimeError("interactive selector requires a TTY")

    checked = [not o.disabled for o in options]
    idx = 0
    casted = _erase(options)

    while True:
        marks = ["[-]" if o.disabled else ("[x]" if c else "[ ]") for o, c in zip(options, checked)]
        _render(title=title, subtitle=subtitle, options=casted, index=idx, marks=marks)
        key = _read_key()

        if key == "up":
            idx = (idx - 1) % len(options)
            continue
        if key == "down":
            idx = (idx + 1) % len(options)
            continue
        if key == "space" and not options[idx].disabled:
            checked[idx] = not checked[idx]
            continue
        if key == "all":
            enabled = [i for i, o in enumerate(options) if not o.disabled]
            target = not all(checked[i] for i in enabled)
            for i in enabled:
                checked[i] = target
            continue
        if key == "enter":
            values = tuple(o.value for o, c in zip(options, checked) if c and not o.disabled)
            return MultiSelectResult(action="select", values=values)
        if key == "cancel":
            return MultiSelectResult(action="cancel", values=())
