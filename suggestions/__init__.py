"""
Recruiting suggestion engine.

Evaluates an athlete's recruiting data against independent rules and manages
the lifecycle of the suggestions they produce.
"""
