"""
Pipeline entry points.

Modules
-------
orchestrator : ActionGenerationOrchestrator (feature flag, idempotency guard,
               single-transaction persistence) and the pure
               evaluate_assessment() companion.
submission   : submit_assessment() scores answers and stores the assessment.
"""
