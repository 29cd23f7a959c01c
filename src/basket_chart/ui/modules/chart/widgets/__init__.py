from .basket_chart import BasketChart

__all__ = ["BasketChart"]
