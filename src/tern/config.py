"""Tern configuration.

TernConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path

from tern._errors import ConfigError
from tern._types import BuildMode, RebuildPolicy

_MODES: frozenset[str] = frozenset({"dev", "prod"})
_POLICIES: frozenset[str] = frozenset({"drop", "rescan"})

# Output directory used when none is configured, per mode
_DEFAULT_OUTPUT: dict[str, str] = {"dev": "dev", "prod": "dist"}


@dataclass(frozen=True, slots=True)
class TernConfig:
    """Configuration for a Tern project.

    Attributes:
        root: Project root.  Always resolved to an absolute path on construction.
        mode: ``"dev"`` (serve + watch + dev-only fragments) or ``"prod"``
            (one build pass, dev-only blocks stripped).
        host: Bind address for the dev server.
        port: Preferred dev server port.
        port_attempts: Ports tried (``port``, ``port + 1``, ...) before giving up.
        output: Output directory.  ``None`` picks ``dev/`` or ``dist/`` by mode.
        source_dir: Directory holding all sources, relative to root.
        styles_dir: Style sources, relative to ``source_dir``.
        style_entry: Style entry point inside ``styles_dir``.
        scripts_dir: Script sources, relative to ``source_dir``.
        pages_dir: Page markup, relative to ``source_dir``.
        includes_dir: Named include fragments, relative to ``source_dir``.
        index_file: Root document, relative to ``source_dir``.
        subsite_dir: Mirrored sub-site, relative to ``source_dir``.
        watch_debounce_ms: Quiet window per watched root.
        build_debounce_ms: Global quiet window before a build starts.
        poll_interval_ms: mtime polling interval for the root document.
        rebuild_policy: ``"drop"`` discards triggers that land mid-build;
            ``"rescan"`` runs exactly one follow-up build instead.
        prefix_command: Vendor-prefix command reading CSS on stdin and writing
            CSS on stdout (e.g. ``("npx", "postcss", "--use", "autoprefixer")``).
            Empty disables prefixing.
        browsers: Browserslist queries for the main stylesheet.
        subsite_browsers: Browserslist queries for sub-site stylesheets.

    """

    root: Path = field(default_factory=Path.cwd)
    mode: BuildMode = "dev"
    host: str = "localhost"
    port: int = 3000
    port_attempts: int = 10
    output: Path | None = None
    source_dir: str = "src"
    styles_dir: str = "resources/scss"
    style_entry: str = "style.scss"
    scripts_dir: str = "resources/js"
    pages_dir: str = "pages"
    includes_dir: str = "includes"
    index_file: str = "index.html"
    subsite_dir: str = "_ui_guide"
    watch_debounce_ms: int = 60
    build_debounce_ms: int = 50
    poll_interval_ms: int = 50
    rebuild_policy: RebuildPolicy = "drop"
    prefix_command: tuple[str, ...] = ()
    browsers: tuple[str, ...] = ("> 0.5%", "last 5 versions", "Firefox ESR", "not dead")
    subsite_browsers: tuple[str, ...] = ("> 0.2%", "last 10 versions")

    def __post_init__(self) -> None:
        # Resolve root to absolute so that watchfiles (which returns
        # absolute paths) can be compared via Path.relative_to().
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())
        if self.mode not in _MODES:
            msg = f"Unknown mode {self.mode!r} (expected 'dev' or 'prod')"
            raise ConfigError(msg)
        if self.rebuild_policy not in _POLICIES:
            msg = f"Unknown rebuild_policy {self.rebuild_policy!r} (expected 'drop' or 'rescan')"
            raise ConfigError(msg)
        if self.port_attempts < 1:
            msg = f"port_attempts must be at least 1, got {self.port_attempts}"
            raise ConfigError(msg)

    @property
    def is_dev(self) -> bool:
        """Whether dev-only behaviour (server, watcher, dev fragments) is on."""
        return self.mode == "dev"

    @property
    def source_path(self) -> Path:
        """Absolute path to the source tree."""
        return self.root / self.source_dir

    @property
    def styles_path(self) -> Path:
        """Absolute path to style sources."""
        return self.source_path / self.styles_dir

    @property
    def style_entry_path(self) -> Path:
        """Absolute path to the style entry point."""
        return self.styles_path / self.style_entry

    @property
    def scripts_path(self) -> Path:
        """Absolute path to script sources."""
        return self.source_path / self.scripts_dir

    @property
    def pages_path(self) -> Path:
        """Absolute path to page markup."""
        return self.source_path / self.pages_dir

    @property
    def includes_path(self) -> Path:
        """Absolute path to include fragments."""
        return self.source_path / self.includes_dir

    @property
    def index_path(self) -> Path:
        """Absolute path to the root document."""
        return self.source_path / self.index_file

    @property
    def subsite_path(self) -> Path:
        """Absolute path to the mirrored sub-site sources."""
        return self.source_path / self.subsite_dir

    @property
    def output_path(self) -> Path:
        """Absolute path to the output directory."""
        output = self.output if self.output is not None else Path(_DEFAULT_OUTPUT[self.mode])
        if output.is_absolute():
            return output
        return self.root / output

    @property
    def css_output_path(self) -> Path:
        """Where the compiled main stylesheet goes."""
        return self.output_path / "resources" / "css"

    @property
    def js_output_path(self) -> Path:
        """Where scripts are propagated to."""
        return self.output_path / "resources" / "js"

    @property
    def pages_output_path(self) -> Path:
        """Where assembled pages go."""
        return self.output_path / self.pages_dir

    @property
    def index_output_path(self) -> Path:
        """The served root document."""
        return self.output_path / "index.html"

    @property
    def subsite_output_path(self) -> Path:
        """Mirror of the sub-site inside the output directory."""
        return self.output_path / self.subsite_dir
