"""Command-line interface: one blocking read-then-dispatch loop."""

import argparse
import shutil
import sys

from loguru import logger

from tbrowser import __version__
from tbrowser.config import CHROME_ROWS, LOG_FILE_NAME, load_config, save_config, state_dir
from tbrowser.document import ViewMode
from tbrowser.download import download
from tbrowser.errors import BrowserError, NotFoundError
from tbrowser.fetch import HttpFetcher
from tbrowser.logging_config import configure_logging
from tbrowser.navigation import Navigator
from tbrowser.session import SessionStore
from tbrowser.terminal import CLEAR, C_RESET, THEMES, paint_line, read_key, shorten_middle, theme

GUTTER = 7  # "1234 │ "

HELP = [
    ("g URL", "Go to URL"),
    ("w / s", "Scroll up / down"),
    ("a [TITLE]", "Bookmark the current page"),
    ("b", "Show bookmarks"),
    ("history", "Show history"),
    ("l", "Show links on this page"),
    ("search QUERY", "Search in current page"),
    ("n / p", "Next / previous search match"),
    ("source", "View page source"),
    ("raw", "Toggle raw mode view"),
    ("download [PATH]", "Save the page (.txt saves the rendered text)"),
    ("theme NAME", "Color theme: " + ", ".join(THEMES)),
    ("r", "Reload current page"),
    ("h", "Show this help"),
    ("q", "Quit"),
]


class BrowserApp:
    def __init__(
        self,
        navigator,
        store,
        cfg,
        *,
        input_fn=input,
        out=None,
        key_fn=read_key,
        size_fn=shutil.get_terminal_size,
        fixed_size=(None, None),
        config_path=None,
    ):
        self.navigator = navigator
        self.store = store
        self.cfg = cfg
        self.input = input_fn
        self.out = out or sys.stdout
        self.read_key = key_fn
        self.size_fn = size_fn
        self.fixed_size = fixed_size
        self.config_path = config_path
        self.palette = theme(cfg.get("COLOR_THEME", "default"))
        self.status = ""

    # ========= OUTPUT =========
    def write(self, text):
        self.out.write(text)

    def clear(self):
        self.write(CLEAR)

    @property
    def columns(self):
        return self.size_fn().columns

    def fit_to_terminal(self):
        size = self.size_fn()
        width, height = self.fixed_size
        width = width or max(10, size.columns - GUTTER)
        height = height or max(1, size.lines - CHROME_ROWS)
        nav = self.navigator
        if (width, height) != (nav.width, nav.height):
            logger.debug(f"Viewport now {width}x{height}")
            nav.resize(width, height)

    def paint(self):
        p = self.palette
        nav = self.navigator
        doc = nav.document
        cols = self.columns

        self.clear()
        title = doc.title if doc else "tbrowser"
        url = doc.url if doc else "No URL"
        self.write(f"{p['title']}{shorten_middle(title, cols)}{C_RESET}\n")
        self.write(f"{p['dim']}└─ URL: {shorten_middle(url, cols - 8)}{C_RESET}\n")

        search = nav.search
        current = search.current if search else None
        for i, line in nav.visible_lines():
            matches = search.matches_on(i) if search else ()
            body = paint_line(line, p, matches, current)
            self.write(f"{p['dim']}{i + 1:4} │{C_RESET} {body}\n")

        status = f" Lines: {len(nav.lines)} | Position: {nav.offset + 1} | {nav.mode.value}"
        if search:
            if current is None:
                status += f" | no matches for {search.query!r}"
            else:
                status += f" | match {search.cursor + 1}/{len(search)}"
        self.write(f"{p['dim']}{status}{C_RESET}\n")
        if self.status:
            self.write(f"{self.status}{C_RESET}\n")
            self.status = ""
        else:
            self.write(f"{p['dim']}[h=help] [w/s=scroll] [q=quit]{C_RESET}\n")

    def show_screen(self, title, lines):
        self.clear()
        self.write(f"{self.palette['title']}=== {title} ==={C_RESET}\n\n")
        for line in lines:
            self.write(line + "\n")
        self.write(f"\n{self.palette['cmd']}Press any key to return...{C_RESET}\n")
        self.out.flush()
        self.read_key()

    def choose(self, title, rows, hint):
        """List (number, label, url) rows; return what the user typed."""
        p = self.palette
        self.clear()
        self.write(f"{p['title']}=== {title} ==={C_RESET}\n\n")
        if not rows:
            self.write("Nothing here.\n")
        for n, label, url in rows:
            short_url = shorten_middle(url, max(20, self.columns - 6))
            self.write(f"{p['marker']}{n}. {C_RESET}{label}\n")
            self.write(f"   {p['dim']}{short_url}{C_RESET}\n")
        self.write(f"\n{p['cmd']}{hint}{C_RESET}\n")
        return self.input("> ").strip().lower()

    # ========= COMMANDS =========
    def run(self, start_url=None):
        if start_url:
            self.dispatch(f"g {start_url}")
        while True:
            self.fit_to_terminal()
            self.paint()
            try:
                line = self.input("Command: ")
            except EOFError:
                break
            if not self.dispatch(line):
                break

    def dispatch(self, line):
        """Run one command. Returns False when the session should end."""
        cmd, _, arg = line.strip().partition(" ")
        arg = arg.strip()
        if cmd in ("q", "quit"):
            return False
        try:
            self.execute(cmd, arg)
        except BrowserError as e:
            logger.info(f"Command {cmd!r} failed: {e}")
            self.status = f"{self.palette['err']}Error: {e}"
        return True

    def execute(self, cmd, arg):
        nav = self.navigator
        if cmd == "":
            return
        if cmd in ("h", "help"):
            self.show_screen("HELP", [f"{c:<16} - {d}" for c, d in HELP])
        elif cmd == "g":
            if not arg:
                self.status = "Usage: g URL"
                return
            doc = nav.navigate(arg)
            self.status = f"Loaded {doc.url}"
        elif cmd == "w":
            nav.scroll_up()
        elif cmd == "s":
            nav.scroll_down()
        elif cmd == "r":
            nav.reload()
            self.status = "Reloaded"
        elif cmd == "a":
            doc = nav.require_document()
            bookmark = self.store.add_bookmark(arg or doc.title, doc.url)
            self.status = f"Bookmarked as {bookmark.title!r}"
        elif cmd == "b":
            self.bookmark_menu()
        elif cmd == "history":
            self.history_menu()
        elif cmd == "l":
            self.links_menu()
        elif cmd == "search":
            if not arg:
                self.status = "Usage: search QUERY"
                return
            found = nav.start_search(arg)
            if not found.matches:
                self.status = f"No matches for {arg!r}"
        elif cmd in ("n", "p"):
            match = nav.next_match() if cmd == "n" else nav.previous_match()
            if match is None:
                self.status = f"No matches for {nav.search.query!r}"
        elif cmd == "source":
            doc = nav.require_document()
            self.show_screen(f"SOURCE {doc.url}", [line.text for line in doc.raw_lines])
        elif cmd == "raw":
            mode = nav.toggle_raw()
            self.status = "Raw mode" if mode is ViewMode.RAW else "Rendered mode"
        elif cmd == "download":
            path = download(nav.require_document(), arg or None)
            self.status = f"Page downloaded to: {path}"
        elif cmd == "theme":
            self.set_theme(arg)
        else:
            self.status = "Unknown command. Press 'h' for help."

    def bookmark_menu(self):
        while True:
            rows = [(i, b.title, b.url) for i, b in enumerate(self.store.list_bookmarks(), 1)]
            c = self.choose("BOOKMARKS", rows, "number=open  d#=delete  q=back")
            if c.startswith("d") and c[1:].isdigit():
                removed = self.store.delete_bookmark(int(c[1:]))
                self.status = f"Deleted bookmark {removed.title!r}"
                continue
            if c.isdigit():
                self.navigator.navigate(self.store.bookmark_at(int(c)))
            return

    def history_menu(self):
        rows = [(i, e.title, e.url) for i, e in enumerate(self.store.list_history(), 1)]
        c = self.choose("HISTORY", rows, "number=open  q=back")
        if c.isdigit():
            self.navigator.navigate(self.store.history_at(int(c)))

    def links_menu(self):
        doc = self.navigator.require_document()
        rows = [(n, f"[{n}]", href) for n, href in sorted(doc.link_table.items())]
        c = self.choose("LINKS", rows, "number=open  q=back")
        if c.isdigit():
            self.navigator.follow_link(int(c))

    def set_theme(self, name):
        if name not in THEMES:
            msg = f"No theme {name!r}, try one of: {', '.join(THEMES)}"
            raise NotFoundError(msg)
        self.cfg["COLOR_THEME"] = name
        self.palette = theme(name)
        try:
            save_config(self.cfg, self.config_path)
        except OSError as e:
            logger.warning(f"Theme changed but config not saved: {e}")
            self.status = f"{self.palette['err']}Theme changed, config not saved: {e}"
            return
        self.status = f"Theme: {name}"


def main(argv=None):
    """Run the terminal browser."""
    parser = argparse.ArgumentParser(prog="tbrowser", description="Terminal text web browser")
    parser.add_argument("url", nargs="?", help="Page to open on start")
    parser.add_argument("--width", type=int, help="Fixed text width instead of the terminal's")
    parser.add_argument("--height", type=int, help="Fixed page height instead of the terminal's")
    parser.add_argument("--state-dir", metavar="DIR", help="Where history, bookmarks and logs live")
    parser.add_argument("--config", metavar="FILE", help="Config file (default ~/.tbrowser_config.json)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    if args.state_dir:
        cfg["STATE_DIR"] = args.state_dir
    sdir = state_dir(cfg)
    sdir.mkdir(parents=True, exist_ok=True)
    configure_logging(verbose=args.verbose, log_file=sdir / LOG_FILE_NAME)

    size = shutil.get_terminal_size()
    width = args.width or max(10, size.columns - GUTTER)
    height = args.height or max(1, size.lines - CHROME_ROWS)

    store = SessionStore(sdir, max_history=cfg["MAX_HISTORY"])
    fetcher = HttpFetcher(cfg["USER_AGENT"], cfg["REQUEST_TIMEOUT"])
    navigator = Navigator(fetcher, store, width, height, scroll_step=cfg["SCROLL_STEP"])
    app = BrowserApp(
        navigator,
        store,
        cfg,
        fixed_size=(args.width, args.height),
        config_path=args.config,
    )

    logger.info("Session started")
    try:
        app.run(args.url)
    except KeyboardInterrupt:
        pass
    logger.info("Session finished")
