"""
Higher-level methods to provision search indexes.

Each public function in this module should:

- perform a complete task, as needed by a script or user action
- avoid non-idempotent calls unless required by a prior state change
- report progress to the user through a `Messenger`, and never raise for remote failures
"""
