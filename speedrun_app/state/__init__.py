"""
Attempt state machine and run manager module.

Manages the attempt lifecycle IDLE → RUNNING → COMPLETED and coordinates
saving finished or abandoned attempts to the run store.
"""
