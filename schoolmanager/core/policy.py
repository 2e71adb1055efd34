from pydantic import BaseModel, ConfigDict


class RosterPolicy(BaseModel):
    """
    School-wide limits. Every field can be overridden from policy.json in the data root;
    anything not given there keeps the default below.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_total_credit: int = 15
    min_credit: int = 1
    max_credit: int = 6
    default_credit: int = 1
    min_identity_number: int = 111
    max_identity_number: int = 999

    def credit_in_range(self, credit: int) -> bool:
        return self.min_credit <= credit <= self.max_credit

    def identity_in_range(self, identity_number: int) -> bool:
        return self.min_identity_number <= identity_number <= self.max_identity_number


DEFAULT_POLICY = RosterPolicy()
