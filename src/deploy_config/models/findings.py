from pydantic import BaseModel


class CheckConfigResult(BaseModel):
    """One validation finding.

    exit=True is fatal: the deploy must not proceed.
    exit=False is advisory and only printed as a warning.
    """

    msg: str
    data: str
    exit: bool

    def __str__(self) -> str:
        return f"{self.msg} {self.data}".strip()


def has_fatal(results: list[CheckConfigResult]) -> bool:
    return any(r.exit for r in results)


def partition_findings(results: list[CheckConfigResult]) -> list[CheckConfigResult]:
    """Advisories first, then fatals, each keeping discovery order."""
    advisories = [r for r in results if not r.exit]
    fatals = [r for r in results if r.exit]
    return advisories + fatals
