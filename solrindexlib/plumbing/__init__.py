"""
Low-level APIs for fine-grained search provisioning.

Each public function in this module should:

- perform a single action, idempotently if possible
- accept context objects (HTTP sessions, sites, credentials) as arguments rather than managing
  their own

Each function also falls into one of three groups:

- getters (prefixed with `get_`, returns a value directly, raises `KeyError` if it doesn't exist)
- actions (returns a `Result` object, may modify state)
- remote calls (returns a `Reply` object, never raises for transport failures)
"""
