"""Domain services: stores, price cache, analytics and the session facade."""
