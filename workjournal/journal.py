#!/usr/bin/env python3
"""
A single-file work journal: dated entries grouped by week.
"""

import json
import os
import re
import secrets
import sqlite3
import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from html import escape
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import click
import markdown
from flask import (
    Flask,
    g,
    jsonify,
    redirect,
    render_template_string,
    request,
    session,
    url_for,
)
from markupsafe import Markup
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

################################################################################
# Imports & constants
################################################################################

ROOT = Path(__file__).parent
DB_FILE = Path(os.environ.get("JOURNAL_DB", str(ROOT / "journal.sqlite3")))

SECRET_FILE = ROOT / ".secret_key"
SECRET_KEY = (
    SECRET_FILE.read_text().strip() if SECRET_FILE.exists() else secrets.token_hex(32)
)
SECRET_FILE.write_text(SECRET_KEY)

# Shared demo login. Not a security control: anyone who reads this file is admin.
ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "sam@buildui.com")
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "password")

MUTATION_DELAY = float(os.environ.get("MUTATION_DELAY", "0"))
REQUIRE_ADMIN_FOR_EDITS = os.environ.get("REQUIRE_ADMIN_FOR_EDITS", "1") != "0"
TZ_DFLT = "UTC"
JOURNAL_TZ = os.environ.get("JOURNAL_TZ", TZ_DFLT)
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

ENTRY_TYPES = ("work", "learning", "interesting-thing")
TYPE_LABELS = {
    "work": "Work",
    "learning": "Learning",
    "interesting-thing": "Interesting things",
}
FORM_LABELS = {
    "work": "Work",
    "learning": "Learning",
    "interesting-thing": "Interesting thing",
}
ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
EARLIEST_DATE = date(1, 1, 7)  # first Sunday of year 1

MD_EXTENSIONS = [
    "pymdownx.magiclink",
    "pymdownx.tilde",
    "pymdownx.betterem",
]

try:
    __version__ = version("workjournal")
except PackageNotFoundError:
    __version__ = "0.1.0-dev"


################################################################################
# App + template filters
################################################################################
app = Flask(__name__)
app.url_map.strict_slashes = False
app.config.update(
    SECRET_KEY=SECRET_KEY,
    DATABASE=str(DB_FILE),
    ADMIN_EMAIL=ADMIN_EMAIL,
    ADMIN_PASSWORD=ADMIN_PASSWORD,
    MUTATION_DELAY=MUTATION_DELAY,
    REQUIRE_ADMIN_FOR_EDITS=REQUIRE_ADMIN_FOR_EDITS,
    JOURNAL_TZ=JOURNAL_TZ,
)
app.config.update(
    SESSION_COOKIE_SAMESITE="Lax",
    SESSION_COOKIE_HTTPONLY=True,
)
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)
app.logger.setLevel(LOG_LEVEL)

md = markdown.Markdown(extensions=MD_EXTENSIONS)


@app.template_filter("mdinline")
def md_inline_filter(text: str | None) -> Markup:
    """
    Render an entry's text as Markdown. Raw HTML is escaped first, and a
    lone <p>…</p> wrapper is dropped so the result sits inside a <li>.
    """
    if not text:
        return Markup("")
    md.reset()
    s = md.convert(escape(text, quote=False)).strip()
    if s.startswith("<p>") and s.endswith("</p>") and s.count("<p>") == 1:
        s = s[3:-4].strip()
    return Markup(s)


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


@app.template_filter("week_label")
def week_label(d: date) -> str:
    """`date(2024, 6, 2)` → ``"Week of June 2nd"``."""
    return f"Week of {d:%B} {_ordinal(d.day)}"


################################################################################
# Errors
################################################################################
class JournalError(Exception):
    """Base class; ``status`` is what the error page answers with."""

    status = 500


class ValidationError(JournalError):
    status = 400


class NotFoundError(JournalError):
    status = 404


class NotAuthorizedError(JournalError):
    status = 401


class StoreError(JournalError):
    status = 500


################################################################################
# Entries
################################################################################
@dataclass(frozen=True)
class Entry:
    id: int | None
    date: date
    type: str
    text: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Entry":
        return cls(
            id=row["id"],
            date=date.fromisoformat(row["date"]),
            type=row["type"],
            text=row["text"],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "type": self.type,
            "text": self.text,
        }


def parse_date(value) -> date:
    """
    Accept a `date` or a ``YYYY-MM-DD`` string and return a calendar date.
    Strings are read as plain dates, never as midnight in some zone.
    """
    if isinstance(value, datetime):
        d = value.date()
    elif isinstance(value, date):
        d = value
    else:
        raw = (value or "").strip() if isinstance(value, str) else ""
        if not ISO_DATE_RE.match(raw):
            raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
        try:
            d = date.fromisoformat(raw)
        except ValueError as exc:
            raise ValidationError(f"Invalid date: {value!r} ({exc})") from exc
    # earlier days have no Sunday to start their week on
    if d < EARLIEST_DATE:
        raise ValidationError(
            f"Invalid date: {value!r} (earliest is {EARLIEST_DATE.isoformat()})"
        )
    return d


def validate_entry(entry_date, entry_type, text) -> tuple[date, str, str]:
    """Return the cleaned ``(date, type, text)`` triple or raise `ValidationError`."""
    d = parse_date(entry_date)
    if entry_type not in ENTRY_TYPES:
        raise ValidationError(
            f"Invalid type: {entry_type!r} (expected one of {', '.join(ENTRY_TYPES)})"
        )
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Text is required.")
    return d, entry_type, text


###############################################################################
# Database helpers
###############################################################################
_TYPE_SQL = ", ".join(f"'{t}'" for t in ENTRY_TYPES)
SCHEMA = f"""
CREATE TABLE IF NOT EXISTS entry (
    id    INTEGER PRIMARY KEY AUTOINCREMENT,
    date  TEXT NOT NULL,                        -- YYYY-MM-DD, no time of day
    type  TEXT NOT NULL
          CHECK (type IN ({_TYPE_SQL})),
    text  TEXT NOT NULL
);
"""
_SCHEMA_CHECKED: set[str] = set()


def connect(path: str) -> sqlite3.Connection:
    db = sqlite3.connect(path)
    db.row_factory = sqlite3.Row
    return db


def get_db():
    if "db" not in g:
        path = app.config["DATABASE"]
        g.db = connect(path)
        if path not in _SCHEMA_CHECKED:
            init_db(g.db)
            _SCHEMA_CHECKED.add(path)
    return g.db


@app.teardown_appcontext
def close_db(error=None):
    db = g.pop("db", None)
    if db is not None:
        db.close()


def init_db(db=None):
    db = db if db is not None else get_db()
    db.executescript(SCHEMA)
    db.commit()


@contextmanager
def _store_errors(action: str):
    try:
        yield
    except sqlite3.Error as exc:
        app.logger.error("store failure while trying to %s: %s", action, exc)
        raise StoreError(f"Could not {action}: {exc}") from exc


class EntryStore:
    """
    Repository over the ``entry`` table.

    Every method touches exactly one row (or reads the table) and commits
    on its own; there are no multi-row transactions and no version column,
    so concurrent edits of one entry are last-write-wins.
    """

    def __init__(self, db: sqlite3.Connection):
        self.db = db

    def create(self, *, entry_date: date, entry_type: str, text: str) -> Entry:
        with _store_errors("create entry"):
            cur = self.db.execute(
                "INSERT INTO entry (date, type, text) VALUES (?,?,?)",
                (entry_date.isoformat(), entry_type, text),
            )
            self.db.commit()
        return Entry(id=cur.lastrowid, date=entry_date, type=entry_type, text=text)

    def find_all(self) -> list[Entry]:
        """All entries in store (insertion) order."""
        with _store_errors("list entries"):
            rows = self.db.execute("SELECT * FROM entry ORDER BY id").fetchall()
        return [Entry.from_row(r) for r in rows]

    def find(self, entry_id: int) -> Entry | None:
        with _store_errors(f"load entry {entry_id}"):
            row = self.db.execute(
                "SELECT * FROM entry WHERE id=?", (entry_id,)
            ).fetchone()
        return Entry.from_row(row) if row else None

    def update(self, entry: Entry) -> bool:
        with _store_errors(f"update entry {entry.id}"):
            cur = self.db.execute(
                "UPDATE entry SET date=?, type=?, text=? WHERE id=?",
                (entry.date.isoformat(), entry.type, entry.text, entry.id),
            )
            self.db.commit()
        return cur.rowcount > 0

    def delete(self, entry_id: int) -> bool:
        with _store_errors(f"delete entry {entry_id}"):
            cur = self.db.execute("DELETE FROM entry WHERE id=?", (entry_id,))
            self.db.commit()
        return cur.rowcount > 0


def get_store() -> EntryStore:
    return EntryStore(get_db())


###############################################################################
# Week grouping
###############################################################################
def week_start(d: date) -> date:
    """The Sunday on or before *d*."""
    # weekday(): Monday=0 … Sunday=6
    return d - timedelta(days=(d.weekday() + 1) % 7)


@dataclass
class WeekGroup:
    week_start: date
    work: list[Entry] = field(default_factory=list)
    learning: list[Entry] = field(default_factory=list)
    interesting_things: list[Entry] = field(default_factory=list)

    def bucket(self, entry_type: str) -> list[Entry]:
        return {
            "work": self.work,
            "learning": self.learning,
            "interesting-thing": self.interesting_things,
        }[entry_type]

    def buckets(self):
        """Yield ``(type, label, entries)`` for every non-empty bucket."""
        for t in ENTRY_TYPES:
            entries = self.bucket(t)
            if entries:
                yield t, TYPE_LABELS[t], entries

    @property
    def entries(self) -> list[Entry]:
        return [*self.work, *self.learning, *self.interesting_things]


def group_by_week(entries) -> list[WeekGroup]:
    """
    Bucket *entries* into Sunday-started weeks, oldest week first.

    • Groups are keyed by the ISO string of the week start, so sorting the
      keys as strings is sorting them by date.
    • Inside a week, entries are split by type and keep their input order.
    • Entries with an unknown type are dropped (the store never holds any).
    """
    by_week: dict[str, list[Entry]] = defaultdict(list)
    for e in entries:
        by_week[week_start(e.date).isoformat()].append(e)

    weeks = []
    for key in sorted(by_week):
        wg = WeekGroup(week_start=date.fromisoformat(key))
        for e in by_week[key]:
            if e.type in ENTRY_TYPES:
                wg.bucket(e.type).append(e)
        weeks.append(wg)
    return weeks


###############################################################################
# Authentication
###############################################################################
@dataclass(frozen=True)
class AdminCapability:
    """Proof that the caller may edit and delete entries."""

    subject: str = "admin"


class CredentialVerifier:
    """Turns a login attempt into an `AdminCapability`, or ``None``."""

    def verify(self, email: str, password: str) -> AdminCapability | None:
        raise NotImplementedError


class StaticCredentialVerifier(CredentialVerifier):
    """
    Literal comparison against one configured email/password pair.

    There is no hashing, throttling or lockout. Swap in another
    `CredentialVerifier` via ``app.extensions["credential_verifier"]``
    before exposing the app to anyone.
    """

    def __init__(self, email: str, password: str):
        self.email = email
        self.password = password

    def verify(self, email: str, password: str) -> AdminCapability | None:
        email_ok = secrets.compare_digest(
            (email or "").encode(), self.email.encode()
        )
        password_ok = secrets.compare_digest(
            (password or "").encode(), self.password.encode()
        )
        return AdminCapability(subject=self.email) if email_ok and password_ok else None


def credential_verifier() -> CredentialVerifier:
    return app.extensions.get("credential_verifier") or StaticCredentialVerifier(
        app.config["ADMIN_EMAIL"], app.config["ADMIN_PASSWORD"]
    )


def is_admin() -> bool:
    return bool(session.get("is_admin"))


def current_capability() -> AdminCapability | None:
    return AdminCapability() if is_admin() else None


###############################################################################
# Entry mutations
###############################################################################
class EntryService:
    """
    Validates and applies entry writes on top of an `EntryStore`.

    `update`, `delete` and `get` (the edit page) require an
    `AdminCapability` unless the service was built with
    ``require_admin=False``. Unknown ids raise `NotFoundError`, deletes
    included. ``delay`` seconds are slept before each write so the UI can
    show its pending state.
    """

    def __init__(
        self, store: EntryStore, *, delay=0.0, require_admin=True, sleep=time.sleep
    ):
        self.store = store
        self.delay = delay
        self.require_admin = require_admin
        self._sleep = sleep

    def _authorize(self, capability: AdminCapability | None, action: str) -> None:
        if self.require_admin and not isinstance(capability, AdminCapability):
            app.logger.warning("rejected %s without admin session", action)
            raise NotAuthorizedError(f"You must be signed in to {action}.")

    def _pause(self) -> None:
        if self.delay > 0:
            self._sleep(self.delay)

    def _existing(self, entry_id: int) -> Entry:
        entry = self.store.find(entry_id)
        if entry is None:
            raise NotFoundError(f"Entry {entry_id} not found")
        return entry

    def create(self, entry_date, entry_type, text) -> Entry:
        d, t, txt = validate_entry(entry_date, entry_type, text)
        self._pause()
        entry = self.store.create(entry_date=d, entry_type=t, text=txt)
        app.logger.info("created entry %s (%s, %s)", entry.id, t, d.isoformat())
        return entry

    def get(self, entry_id: int, *, capability: AdminCapability | None = None) -> Entry:
        self._authorize(capability, "edit entries")
        return self._existing(entry_id)

    def update(
        self,
        entry_id: int,
        entry_date,
        entry_type,
        text,
        *,
        capability: AdminCapability | None = None,
    ) -> Entry:
        self._authorize(capability, "edit entries")
        self._existing(entry_id)
        d, t, txt = validate_entry(entry_date, entry_type, text)
        self._pause()
        entry = Entry(id=entry_id, date=d, type=t, text=txt)
        if not self.store.update(entry):
            # deleted between the lookup and the write
            raise NotFoundError(f"Entry {entry_id} not found")
        app.logger.info("updated entry %s", entry_id)
        return entry

    def delete(
        self, entry_id: int, *, capability: AdminCapability | None = None
    ) -> None:
        self._authorize(capability, "delete entries")
        self._pause()
        if not self.store.delete(entry_id):
            raise NotFoundError(f"Entry {entry_id} not found")
        app.logger.info("deleted entry %s", entry_id)


def get_service() -> EntryService:
    return EntryService(
        get_store(),
        delay=float(app.config.get("MUTATION_DELAY", 0) or 0),
        require_admin=bool(app.config.get("REQUIRE_ADMIN_FOR_EDITS", True)),
    )


###############################################################################
# Time helpers
###############################################################################
def tz_name() -> str:
    name = app.config.get("JOURNAL_TZ") or TZ_DFLT
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return TZ_DFLT
    return name


def today() -> date:
    """Today's calendar date in the journal's zone (form default)."""
    return datetime.now(ZoneInfo(tz_name())).date()


app.jinja_env.globals.update(
    version=__version__,
    entry_types=ENTRY_TYPES,
    form_labels=FORM_LABELS,
    is_admin=is_admin,
    today=today,
)


###############################################################################
# Templates + Views
###############################################################################
def wrap(body: str) -> str:
    """Glue prolog + page-specific body + epilog."""
    return TEMPL_PROLOG + body + TEMPL_EPILOG


TEMPL_PROLOG = """
<!doctype html>
<html lang="en">
<title>{{ title or 'Work Journal' }}</title>
<meta name="viewport" content="width=device-width, initial-scale=1">
<meta charset="utf-8">
<style>
html{font-size:62.5%;font-family:-apple-system,BlinkMacSystemFont,"Segoe UI",Roboto,"Helvetica Neue",Arial,sans-serif}
body{font-size:1.8rem;line-height:1.618;max-width:38em;margin:auto;color:#c9c9c9;background-color:#222222;padding:13px}
h1{font-size:3em;line-height:1.1;margin:3rem 0 .5rem}
a{color:#ffffff;text-decoration:underline;text-decoration-color:transparent;text-underline-offset:.18em}
a:hover{color:#c9c9c9;text-decoration-color:#c9c9c9}
ul{padding-left:2em;margin:.25rem 0 1rem}
li .edit-link{margin-left:.5rem;font-size:.8em;opacity:0;transition:opacity .2s}
li:hover .edit-link,li .edit-link:focus{opacity:1}
textarea,select,input{color:#c9c9c9;padding:6px 10px;margin-bottom:10px;background-color:#4a4a4a;border:1px solid #4a4a4a;border-radius:4px;box-sizing:border-box}
textarea{width:100%;min-height:6rem}
button{padding:5px 12px;background:#95bbec;color:#222;border:1px solid #95bbec;border-radius:1px;cursor:pointer;font-weight:600}
fieldset{border:0;margin:0;padding:0}
fieldset:disabled{opacity:.7}
.box{border:1px solid #4a4a4a;padding:1rem 1.25rem;margin:2rem 0}
.tagline{color:#888;margin-top:0}
.week{margin-top:3rem}
.week-title{font-weight:700;margin-bottom:.5rem}
.link-button{background:none;border:0;color:#888;text-decoration:underline;padding:0;font-weight:normal}
.error{border-left:3px solid #c00;padding-left:1rem}
</style>
<body>
{% macro entry_form(e=None) -%}
<form method="post" class="entry-form">
  <fieldset>
    <input type="date" name="date" required
           value="{{ e.date.isoformat() if e else today().isoformat() }}">
    <div>
      {% for t in entry_types %}
      <label style="display:inline-block;margin-right:1rem;">
        <input type="radio" name="type" value="{{ t }}" required
               {% if t == (e.type if e else 'work') %}checked{% endif %}>
        {{ form_labels[t] }}
      </label>
      {% endfor %}
    </div>
    <textarea name="text" required placeholder="Type your entry...">{{ e.text if e else '' }}</textarea>
    <div style="text-align:right;"><button type="submit">Save</button></div>
  </fieldset>
</form>
{%- endmacro %}
<div class="container">
  <h1><a href="{{ url_for('index') }}" style="text-decoration:none;">Work Journal</a></h1>
  <p class="tagline">Learnings and doings. Updated weekly.</p>
  <nav style="font-size:.8em;">
    {% if is_admin() %}
      <form method="post" action="{{ url_for('index') }}" style="display:inline;">
        <input type="hidden" name="_action" value="logout">
        <button class="link-button">Log out</button>
      </form>
    {% else %}
      <a href="{{ url_for('login') }}">Log in</a>
    {% endif %}
  </nav>
  <main id="main-content">
"""

TEMPL_EPILOG = """
  </main>
  <footer style="margin-top:3em;padding-top:1.5em;font-size:.8em;color:#888;border-top:1px solid #444;">
    workjournal <span>v{{ version }}</span>
  </footer>
</div>
<script>
document.querySelectorAll('form.entry-form, form.delete-form').forEach(f => {
  f.addEventListener('submit', ev => {
    if (f.classList.contains('delete-form') && !confirm('Are you sure?')) {
      ev.preventDefault();
      return;
    }
    const fs = f.querySelector('fieldset');
    const btn = f.querySelector('button[type=submit]');
    if (btn) btn.textContent = 'Saving...';
    if (fs) setTimeout(() => { fs.disabled = true; }, 0);
  });
});
</script>
</body>
</html>
"""


@app.route("/", methods=["GET", "POST"])
def index():
    if request.method == "POST":
        if request.form.get("_action") == "logout":
            return logout()

        get_service().create(
            request.form.get("date", ""),
            request.form.get("type", ""),
            request.form.get("text", ""),
        )
        return redirect(url_for("index"), code=303)

    weeks = group_by_week(get_store().find_all())
    return render_template_string(TEMPL_INDEX, weeks=weeks)


TEMPL_INDEX = wrap("""{% block body %}
<div class="box">
  <p style="font-style:italic;margin:0;">Create a new entry</p>
  {{ entry_form() }}
</div>

{% for week in weeks %}
<section class="week" id="week-{{ week.week_start.isoformat() }}">
  <p class="week-title">{{ week.week_start|week_label }}</p>
  {% for t, label, items in week.buckets() %}
  <div class="bucket bucket-{{ t }}">
    <p style="margin:0;">{{ label }}</p>
    <ul>
      {% for e in items %}
      <li>{{ e.text|mdinline }}<a class="edit-link" href="{{ url_for('edit_entry', entry_id=e.id) }}">Edit</a></li>
      {% endfor %}
    </ul>
  </div>
  {% endfor %}
</section>
{% else %}
<p>No entries yet.</p>
{% endfor %}
{% endblock %}
""")


@app.route("/entries/<int:entry_id>/edit", methods=["GET", "POST"])
def edit_entry(entry_id):
    service = get_service()
    capability = current_capability()

    if request.method == "POST":
        if request.form.get("_action") == "delete":
            service.delete(entry_id, capability=capability)
        else:
            service.update(
                entry_id,
                request.form.get("date", ""),
                request.form.get("type", ""),
                request.form.get("text", ""),
                capability=capability,
            )
        return redirect(url_for("index"), code=303)

    entry = service.get(entry_id, capability=capability)
    return render_template_string(
        TEMPL_EDIT_ENTRY, e=entry, title=f"Edit entry {entry.id} – Work Journal"
    )


TEMPL_EDIT_ENTRY = wrap("""
{% block body %}
<p>Editing entry {{ e.id }}</p>
<div class="box">
  {{ entry_form(e) }}
</div>
<form method="post" class="delete-form">
  <button name="_action" value="delete" class="link-button">Delete this entry...</button>
</form>
{% endblock %}
""")


@app.route("/entries.json")
def entries_json():
    return jsonify([e.to_dict() for e in get_store().find_all()])


@app.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        email = request.form.get("email", "")
        capability = credential_verifier().verify(
            email, request.form.get("password", "")
        )
        if capability is not None:
            session.clear()
            session.permanent = True
            session["is_admin"] = True
            app.logger.info("admin signed in")
            return redirect(url_for("index"), code=303)
        app.logger.warning("failed login attempt for %r", email)

    return render_template_string(TEMPL_LOGIN, title="Log in – Work Journal")


TEMPL_LOGIN = wrap("""
{% block body %}
<div style="margin-top:2rem;">
{% if is_admin() %}
  <p>You're signed in!</p>
{% else %}
  <form method="post">
    <input type="email" name="email" placeholder="Email" autocomplete="username">
    <input type="password" name="password" placeholder="Password" autocomplete="current-password">
    <button>Log in</button>
  </form>
{% endif %}
</div>
{% endblock %}
""")


@app.route("/logout")
def logout():
    session.clear()
    return redirect(url_for("index"), code=303)


@app.after_request
def sec_headers(resp):
    resp.headers.update(
        {
            "X-Frame-Options": "DENY",
            "X-Content-Type-Options": "nosniff",
            "Referrer-Policy": "strict-origin-when-cross-origin",
        }
    )
    return resp


###############################################################################
# Error pages
###############################################################################
@app.errorhandler(JournalError)
def journal_error(exc):
    """Every domain error ends up here, shown with its raw message."""
    if exc.status >= 500:
        app.logger.error("%s: %s", type(exc).__name__, exc)
    else:
        app.logger.info("%s %s: %s", exc.status, type(exc).__name__, exc)
    return render_template_string(
        TEMPL_ERROR,
        status=exc.status,
        heading=type(exc).__name__,
        message=str(exc),
        title=f"{exc.status} – Work Journal",
    ), exc.status


@app.errorhandler(404)
def not_found(exc):
    return render_template_string(
        TEMPL_ERROR,
        status=404,
        heading="Page not found",
        message="The URL you asked for doesn’t exist.",
        title="404 – Work Journal",
    ), 404


@app.errorhandler(500)
def internal_error(exc):
    """
    Fallback for anything unhandled. With debug on Flask shows the
    Werkzeug traceback instead.
    """
    original = getattr(exc, "original_exception", None)
    app.logger.error("unhandled error: %r", original or exc)
    message = str(original) if original is not None else "Internal Server Error"
    if isinstance(exc, HTTPException) and original is None:
        message = exc.description or message
    return render_template_string(
        TEMPL_ERROR,
        status=500,
        heading="Internal Server Error",
        message=message,
        title="500 – Work Journal",
    ), 500


TEMPL_ERROR = wrap("""
{% block body %}
<div class="error" style="margin-top:2rem;">
  <h2 style="margin-top:0">{{ status }} {{ heading }}</h2>
  <p>{{ message }}</p>
  <p><a href="{{ url_for('index') }}">Back to the journal</a></p>
</div>
{% endblock %}
""")


###############################################################################
# CLI – schema + import/export
###############################################################################
@app.cli.command("init-db")
def cli_init_db():
    """Create the entry table (no-op if it already exists)."""
    init_db()
    click.secho(f"Database ready at {app.config['DATABASE']}", fg="green")


@app.cli.command("export")
@click.argument("out", type=click.File("w"), default="-")
def cli_export(out):
    """Write every entry to OUT (default stdout) as JSON."""
    entries = [e.to_dict() for e in get_store().find_all()]
    json.dump(entries, out, indent=2, ensure_ascii=False)
    out.write("\n")
    if out.name != "<stdout>":
        click.echo(f"Exported {len(entries)} entries.", err=True)


@app.cli.command("import")
@click.argument("src", type=click.File("r"))
def cli_import(src):
    """
    Load entries from a JSON list of ``{date, type, text}`` objects.
    Ids in the file are ignored; each entry gets a fresh one.
    """
    try:
        data = json.load(src)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise click.ClickException("Expected a JSON list of entries.")

    # validate everything first so a bad record imports nothing
    cleaned = []
    for n, rec in enumerate(data, start=1):
        if not isinstance(rec, dict):
            raise click.ClickException(f"Entry #{n}: expected an object")
        try:
            cleaned.append(
                validate_entry(rec.get("date"), rec.get("type"), rec.get("text"))
            )
        except ValidationError as exc:
            raise click.ClickException(f"Entry #{n}: {exc}") from exc

    service = EntryService(get_store())
    for d, t, txt in cleaned:
        service.create(d, t, txt)
    click.secho(f"Imported {len(cleaned)} entries.", fg="green")


###############################################################################
# main
###############################################################################
if __name__ == "__main__":
    app.run(debug=True)
