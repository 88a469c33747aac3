"""Counter queue application.

Models, services, API views and realtime consumers for routing patients
to hospital counters and moving their tokens through the queue.
"""
