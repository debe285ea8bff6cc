"""
Order lifecycle engine.

Snapshot store, projector, state machine, cooking timers, working-set
pipeline, bulk executor and the alert / notification pipeline, composed by
``StaffConsole``.
"""
