from dataclasses import dataclass


@dataclass(slots=True)
class Principal:
    """Identity proven by Supabase Auth for the current request.

    Carries no role: trust flags are always read from the users table by the
    services that need them.
    """

    subject: str
    email: str | None = None

    @property
    def actor_id(self) -> str:
        return self.subject


def actor_id_of(principal: Principal | None) -> str | None:
    if principal is None:
        return None
    return principal.actor_id
