"""
Ripley delivery-commitment checker.

Logs in, searches a SKU, adds it to the cart and reads the delivery
commitment date from the cart page. `checker.main` is the entrypoint.
"""
