# services/errors.py
"""
Domain errors raised by the billing services.

All are ValueError subclasses; routers translate them into HTTP responses.
"""


class ConfigurationMissing(ValueError):
     """The society has no active charge heads to bill with."""

     def __init__(self, message: str = "Billing is not configured for this society. "
                                         "Set up charge heads in billing settings first."):
          super().__init__(message)


class NoUnitsFound(ValueError):
     """The society has no active flats to bill."""

     def __init__(self, message: str = "No active flats found for this society"):
          super().__init__(message)


class InvalidChargeHeads(ValueError):
     """A submitted charge-head list failed validation. `problems` lists every issue found."""

     def __init__(self, problems: list):
          self.problems = list(problems)
          super().__init__("; ".join(self.problems))


class FlatNotFound(ValueError):
     pass


class DuplicateBill(ValueError):
     pass


class BillNotFound(ValueError):
     pass


class BillAlreadyPaid(ValueError):
     pass


class TransactionNotFound(ValueError):
     pass


class PaymentNotPendingClearance(ValueError):
     pass
