# Centralized config store locations to prevent drift.

COL_RUNTIME_CONFIG = "runtime_config"  # runtime_config/{doc}
DOC_TWILIO = "twilio"  # fields: sid, token, number
