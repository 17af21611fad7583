"""
Config validation for the Searchlab search widget.

Validates the Config dataclass and returns a list of ValidationResult items.
Critical errors block startup (no search is issued).
Non-critical warnings use safe defaults with logged messages.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List


@dataclass
class ValidationResult:
    """Describes a single config validation issue."""

    field: str        # Config field name, e.g. "search_api"
    value: object     # Actual value found in the config
    severity: str     # "critical" or "warning"
    message: str      # Human-readable description of the problem
    suggestion: str = ""  # How the user can fix it


class ConfigValidator:
    """Validates a Config object and returns a list of ValidationResult items.

    Uses hasattr() checks before accessing fields so a partial config object
    (e.g. a test double) never crashes the validator.
    """

    def validate(self, cfg) -> List[ValidationResult]:
        """Run all validation rules on cfg and return the results."""
        results: List[ValidationResult] = []

        # --- Critical validations ---
        self._check_search_api(cfg, results)
        self._check_page_path(cfg, results)

        # --- Non-critical validations ---
        self._check_timeout(cfg, results)

        return results

    # ------------------------------------------------------------------
    # Critical checks
    # ------------------------------------------------------------------

    def _check_search_api(self, cfg, results: List[ValidationResult]) -> None:
        if not hasattr(cfg, "search_api"):
            return
        val = cfg.search_api
        if not val or not str(val).startswith(("http://", "https://")):
            results.append(ValidationResult(
                field="search_api",
                value=val,
                severity="critical",
                message=(
                    "search_api must be an HTTP(S) URL "
                    "(e.g. http://searchlab.eu/api/yacysearch.json)"
                ),
                suggestion="Point search_api at the yacysearch.json endpoint of your instance",
            ))

    def _check_page_path(self, cfg, results: List[ValidationResult]) -> None:
        if not hasattr(cfg, "page_path"):
            return
        val = cfg.page_path
        if not val or not Path(val).is_file():
            results.append(ValidationResult(
                field="page_path",
                value=val,
                severity="critical",
                message=f"page_path ({val}) is not a readable file",
                suggestion="Remove page_path from options.json to use the bundled search page",
            ))

    # ------------------------------------------------------------------
    # Non-critical checks (warnings only, safe defaults applied by caller)
    # ------------------------------------------------------------------

    def _check_timeout(self, cfg, results: List[ValidationResult]) -> None:
        if not hasattr(cfg, "request_timeout_sec"):
            return
        val = cfg.request_timeout_sec
        if isinstance(val, bool) or not isinstance(val, (int, float)) or val <= 0:
            results.append(ValidationResult(
                field="request_timeout_sec",
                value=val,
                severity="warning",
                message=f"request_timeout_sec ({val}) must be positive - resetting to 15",
                suggestion="Typical value: request_timeout_sec=15",
            ))

    # ------------------------------------------------------------------
    # Helper
    # ------------------------------------------------------------------

    @staticmethod
    def has_critical(results: List[ValidationResult]) -> bool:
        """Return True if any result has severity 'critical'."""
        return any(r.severity == "critical" for r in results)
