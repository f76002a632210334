from enum import Enum


class PaymentMethod(str, Enum):
    """
    Payment methods accepted at checkout.

    Card methods go through the (mocked) card gateway and can be declined,
    PayPal and bank transfers are always accepted by the mock.
    """

    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"

    @property
    def is_card(self) -> bool:
        return self in (PaymentMethod.CREDIT_CARD, PaymentMethod.DEBIT_CARD)

    @classmethod
    def from_string(cls, value: str) -> 'PaymentMethod':
        """
        Convert user input to PaymentMethod, case-insensitive.

        Raises:
            ValueError: If value is not one of the accepted methods
        """
        if isinstance(value, PaymentMethod):
            return value
        valid = ', '.join(m.value for m in cls)
        if not isinstance(value, str):
            raise ValueError(f"Unsupported payment method {value!r}. Valid methods: {valid}")
        normalized = value.strip().lower()
        for method in cls:
            if method.value == normalized:
                return method
        raise ValueError(f"Unsupported payment method '{value}'. Valid methods: {valid}")
