import sys
import termios
import tty

# ========= COLORS =========
C_RESET = "\033[0m"
CLEAR = "\033[2J\033[H"

THEMES = {
    "default": {
        "title": "\033[96m",
        "heading": "\033[1;96m",
        "link": "\033[4;94m",
        "marker": "\033[93m",
        "cmd": "\033[92m",
        "err": "\033[91m",
        "dim": "\033[90m",
        "plain": "\033[0m",
        "pre": "\033[37m",
        "emphasis": "\033[1m",
        "match": "\033[30;43m",
        "current": "\033[30;103;1m",
    },
    "night": {
        "title": "\033[38;5;250m",
        "heading": "\033[1;38;5;250m",
        "link": "\033[38;5;180m",
        "marker": "\033[38;5;137m",
        "cmd": "\033[38;5;65m",
        "err": "\033[38;5;131m",
        "dim": "\033[38;5;240m",
        "plain": "\033[38;5;245m",
        "pre": "\033[38;5;246m",
        "emphasis": "\033[1;38;5;250m",
        "match": "\033[38;5;16;48;5;136m",
        "current": "\033[38;5;16;48;5;178m",
    },
}


def theme(name):
    return THEMES.get(name, THEMES["default"])


# ========= KEYS =========
def read_key():
    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        ch = sys.stdin.read(1)

        # Arrow keys start with ESC
        if ch == "\x1b":
            seq = sys.stdin.read(2)
            return {"[A": "UP", "[B": "DOWN", "[C": "RIGHT", "[D": "LEFT"}.get(seq, ch)
        if ch == "\x7f":
            return "BACKSPACE"
        return ch
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)


# ========= TEXT =========
def shorten_middle(text, max_len):
    if len(text) <= max_len:
        return text
    if max_len < 10:
        return text[:max(0, max_len)]
    keep = (max_len - 3) // 2
    return text[:keep] + "..." + text[-keep:]


def paint_line(line, palette, matches=(), current=None):
    """ANSI rendering of a DisplayLine with search hits highlighted."""
    cuts = set()
    for m in matches:
        cuts.update((m.start, m.end))

    out = []
    pos = 0
    for span in line.spans:
        start, end = pos, pos + len(span.text)
        bounds = [start, *sorted(c for c in cuts if start < c < end), end]
        for a, b in zip(bounds, bounds[1:]):
            color = palette.get(span.style, palette["plain"])
            for m in matches:
                if m.start <= a and b <= m.end:
                    color = palette["current"] if m == current else palette["match"]
                    break
            out.append(f"{color}{span.text[a - start:b - start]}{C_RESET}")
        pos = end
    return "".join(out)
