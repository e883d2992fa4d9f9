from typing import Iterable, List, Optional


class SignerCoordinator:
    """Eligibility and completion rules for the signers of one request.

    Works on any objects exposing ``sequence`` and ``status``, so it can be
    used on model instances or plain records. A single-party request is
    represented by one implicit signer under the AND policy.
    """

    def __init__(self, signers: Iterable, require_all: bool = True, require_sequential: bool = False):
        self.signers = sorted(signers, key=lambda s: s.sequence)
        self.require_all = require_all
        self.require_sequential = require_sequential

    @classmethod
    def for_request(cls, signature_request, signers: Optional[Iterable] = None) -> 'SignerCoordinator':
        if signers is None:
            signers = signature_request.signers.all()
        return cls(
            signers,
            require_all=signature_request.require_all,
            require_sequential=signature_request.require_sequential,
        )

    def _predecessors(self, signer) -> List:
        return [s for s in self.signers if s.sequence < signer.sequence]

    def blocking_reason(self, signer) -> Optional[str]:
        """Why the signer cannot act right now, or None when eligible."""
        if signer.status == 'signed':
            return 'signer already signed'
        if signer.status == 'declined':
            return 'signer already declined'

        if self.require_sequential:
            predecessors = self._predecessors(signer)
            if any(s.status == 'declined' for s in predecessors):
                return 'blocked by declined earlier signer'
            if any(s.status != 'signed' for s in predecessors):
                return 'awaiting earlier signer'

        return None

    def can_act(self, signer) -> bool:
        return self.blocking_reason(signer) is None

    def eligible_signers(self) -> List:
        return [s for s in self.signers if self.can_act(s)]

    def signed_count(self) -> int:
        return sum(1 for s in self.signers if s.status == 'signed')

    def is_complete(self) -> bool:
        if not self.signers:
            return False
        if self.require_all:
            return all(s.status == 'signed' for s in self.signers)
        return any(s.status == 'signed' for s in self.signers)

    def can_still_complete(self) -> bool:
        """False once no sequence of future actions can satisfy the policy."""
        if self.is_complete():
            return True
        if self.require_all:
            return not any(s.status == 'declined' for s in self.signers)
        # OR: basta um pendente que ainda possa chegar a agir
        for signer in self.signers:
            if signer.status != 'pending':
                continue
            if self.require_sequential and any(p.status == 'declined' for p in self._predecessors(signer)):
                continue
            return True
        return False
