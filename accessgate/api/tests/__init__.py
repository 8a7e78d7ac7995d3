"""
AccessGate API Test Suite

Test Files:
- conftest.py: Shared fixtures (database, accounts, tokens, clients)
- test_state_machine.py: Grant/revoke transitions and their audit records
- test_audit_log.py: Audit ledger writes, queries, immutability and table constraints
- test_gate.py: Per-request access status re-verification
- test_auth_flow.py: Registration, login and the Account API
- test_admin_api.py: Admin API endpoints and access history
- test_e2e_access_flow.py: Register, approve, revoke, re-approve traces
- test_failure_modes.py: Store failures, races and recovery
- test_request_logging.py: Request ids and per-request log lines

Run Commands:
    # All tests
    pytest accessgate/api/tests -v

    # Failure tests only
    pytest accessgate/api/tests/test_failure_modes.py -v
"""
