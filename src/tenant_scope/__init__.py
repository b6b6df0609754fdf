"""
tenant_scope v1.0 — Tenant isolation linter for the booking backend.

Scans backend TypeScript sources for Prisma data-access calls on
tenant-scoped models and flags every call that does not filter on the
tenant identifier:
- Location-scoped models must filter on localId
- Brand-scoped models must filter on brandId
- Calls may opt out with an inline "tenant-scope-ignore" comment

Usage:
    python -m tenant_scope [root]
    python -m tenant_scope --json
    python -m tenant_scope --strict-unknown-models
    check-tenant-scope --rules path/to/scope_rules.yaml
"""

__version__ = "1.0"
