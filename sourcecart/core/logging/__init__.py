from .payloads import cart_lines_to_loggable, product_to_loggable

__all__ = ["cart_lines_to_loggable", "product_to_loggable"]
