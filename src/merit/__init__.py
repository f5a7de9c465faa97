"""University event registration and merit points tracking API."""
