"""
Accord
======

Organization lifecycle and agreement validity engine for the internship
portal: which account-status transitions an organization may undergo,
when it may operate given its agreement expiry, and how a status change
is applied optimistically and reconciled with the backend.

Import structure
----------------
`import accord` is intentionally cheap: only the stdlib-based
sub-modules are imported by default.  The HTTP client in
:pymod:`accord.remote` (*httpx*) and the settings model
(*pydantic-settings*) are only imported when you access them, or
:pymod:`accord.coordinator` which depends on the remote contract.

Sub-modules
~~~~~~~~~~~
- :pymod:`accord.models`       – ``Organization`` dataclass, ``Status`` / ``Action`` enums, ``TransitionRequest``
- :pymod:`accord.validity`     – ``can_operate``, ``agreement_status``, ``days_until_expiry``, ...
- :pymod:`accord.lifecycle`    – transition table and ``check_transition``
- :pymod:`accord.errors`       – result objects and exceptions
- :pymod:`accord.portfolio`    – ``Portfolio`` in-memory entity store
- :pymod:`accord.remote`       – remote status service contract + httpx client
- :pymod:`accord.coordinator`  – ``MutationCoordinator`` (busy set, optimistic update, rollback)
- :pymod:`accord.settings`     – environment-driven configuration

Quick start
-----------
>>> from datetime import date
>>> from accord.models import Organization, Status
>>> from accord.validity import can_operate
>>> org = Organization("o1", "Acme", status=Status.ACTIVE, agreement_expiry=date(2099, 1, 1))
>>> can_operate(org)
True

"""

__all__ = [
    "models",
    "validity",
    "lifecycle",
    "errors",
    "portfolio",
    "remote",
    "coordinator",
    "settings",
]

__version__ = "0.1.0"
