"""Task queue, worker, durable status store, and notifications."""
