"""Top‑level package for the store engine.

The catalog lives in :mod:`store` and is built from the aggregating
collection in :mod:`product_collection`.  Carts, customers and checkout are
in :mod:`shopping_cart`, :mod:`customer` and :mod:`cash_register`, snapshot
files in :mod:`snapshot`, and :mod:`app` wires everything together.
"""
