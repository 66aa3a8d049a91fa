"""
Example: Conditional validation with Gatekeep

Shows conditions that can be printed, rule sets for partial validation,
nested validators and running the same validator synchronously or
asynchronously.
"""

import asyncio
from dataclasses import dataclass

from gatekeep import (
    Field,
    PrintHook,
    ValidationFailure,
    Validator,
    explain,
    parse_condition,
    use_tracing,
)

# =============================================================================
# Domain model
# =============================================================================


@dataclass
class Address:
    street: str | None = None
    country: str = "US"
    zip_code: str | None = None


@dataclass
class Customer:
    name: str | None = None
    tier: int = 0
    referrer: str | None = None
    address: Address | None = None


# =============================================================================
# Validators
# =============================================================================


class AddressValidator(Validator[Address]):
    def __init__(self):
        super().__init__()
        self.rule_for("street").not_null()
        self.when(
            Field("country") == "US",
            lambda: self.rule_for("zip_code").not_null(),
        )


async def referrer_exists(customer):
    await asyncio.sleep(0)  # stand-in for a database lookup
    if customer.referrer == "nobody":
        return [ValidationFailure("referrer", "Unknown referrer", customer.referrer)]
    return []


class CustomerValidator(Validator[Customer]):
    def __init__(self):
        super().__init__()
        self.rule_set("Names", lambda: self.rule_for("name").not_null())
        self.when(
            parse_condition("tier == 2"),
            lambda: self.rule_for("referrer").not_null(),
        )
        self.custom(referrer_exists)
        self.rule_for("address").set_validator(AddressValidator())


if __name__ == "__main__":
    validator = CustomerValidator()
    print(explain(validator, verbose=True))
    print()

    customer = Customer(tier=2, referrer=None, address=Address(street=None))

    with use_tracing(PrintHook()):
        result = validator.validate(customer, rule_sets=["Names", "default"])
    for failure in result.failures:
        print(failure)

    print()
    result = asyncio.run(
        validator.validate_async(Customer(referrer="nobody", address=Address("x")))
    )
    for failure in result.failures:
        print(failure)
