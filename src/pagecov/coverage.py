"""
Page coverage facade.

`Coverage` gathers information about the parts of JavaScript and CSS that
were used by a page. Getting the share of initially executed code:

    coverage = Coverage(session)
    await asyncio.gather(coverage.start_js_coverage(), coverage.start_css_coverage())
    # ... navigate the page ...
    js_coverage = await coverage.stop_js_coverage()
    css_coverage = await coverage.stop_css_coverage()
    metrics = calculate_metrics([*js_coverage, *css_coverage])
    print(f"Bytes used: {metrics['usage_ratio']:.1%}")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pagecov.config import CoverageConfig, load_config
from pagecov.css_coverage import CSSCoverage
from pagecov.js_coverage import JSCoverage

if TYPE_CHECKING:
    from pathlib import Path

    from pagecov.config import CSSCoverageOptions, JSCoverageOptions
    from pagecov.models import CoverageEntry
    from pagecov.session import DevToolsSession


class Coverage:
    """Start and stop JavaScript and CSS coverage on a single page session."""

    def __init__(self, session: DevToolsSession, config: CoverageConfig | None = None) -> None:
        """
        Create both collectors on the given session.

        Args:
            session: The page session.
            config: Default options for both collectors and the fetch settle timeout.

        """
        self._config = config if config is not None else CoverageConfig()
        self._js_coverage = JSCoverage(session, settle_timeout=self._config.settle_timeout)
        self._css_coverage = CSSCoverage(session, settle_timeout=self._config.settle_timeout)

    @classmethod
    def from_config_file(cls, session: DevToolsSession, config_path: str | Path) -> Coverage:
        """Create a facade whose defaults come from a YAML configuration file (see `load_config`)."""
        return cls(session, load_config(config_path))

    @property
    def config(self) -> CoverageConfig:
        """The configuration the collectors were created with."""
        return self._config

    @property
    def js(self) -> JSCoverage:
        """The JavaScript collector."""
        return self._js_coverage

    @property
    def css(self) -> CSSCoverage:
        """The CSS collector."""
        return self._css_coverage

    async def start_js_coverage(
        self,
        options: JSCoverageOptions | None = None,
        *,
        reset_on_navigation: bool | None = None,
        report_anonymous_scripts: bool | None = None,
    ) -> None:
        """
        Start JavaScript coverage.

        Args:
            options: Coverage options, defaulting to the `js` section of the configuration;
                keyword arguments override its fields.
            reset_on_navigation: Whether to reset coverage on every navigation. Defaults to True.
            report_anonymous_scripts: Whether scripts without a URL (created with `eval` or
                `new Function`) are reported, as `debugger://VM<scriptId>`. Defaults to False.

        """
        await self._js_coverage.start(
            options or self._config.js,
            reset_on_navigation=reset_on_navigation,
            report_anonymous_scripts=report_anonymous_scripts,
        )

    async def stop_js_coverage(self) -> list[CoverageEntry]:
        """
        Stop JavaScript coverage and return a report per script.

        Each entry holds the script URL, its content, and the executed ranges,
        sorted and non-overlapping, `start` inclusive and `end` exclusive.
        Anonymous scripts are not included by default, but scripts with a
        sourceURL are.
        """
        return await self._js_coverage.stop()

    async def start_css_coverage(self, options: CSSCoverageOptions | None = None, *, reset_on_navigation: bool | None = None) -> None:
        """
        Start CSS coverage.

        Args:
            options: Coverage options, defaulting to the `css` section of the configuration;
                keyword arguments override its fields.
            reset_on_navigation: Whether to reset coverage on every navigation. Defaults to True.

        """
        await self._css_coverage.start(options or self._config.css, reset_on_navigation=reset_on_navigation)

    async def stop_css_coverage(self) -> list[CoverageEntry]:
        """
        Stop CSS coverage and return a report per stylesheet.

        Dynamically injected style tags without a sourceURL are not included.
        """
        return await self._css_coverage.stop()
