"""
adapters: vendor task APIs behind one unified interface.

Each vendor (Todoist, Google Tasks, …) is a subclass of TaskAdapter that
normalizes its native task shape into UnifiedTask and maps unified writes
back onto the vendor API.
"""
