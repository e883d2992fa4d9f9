from types import SimpleNamespace
from apps.domain.policies.signer_coordinator import SignerCoordinator


def signers(*statuses):
    return [SimpleNamespace(id=i, sequence=i, status=status) for i, status in enumerate(statuses, start=1)]


class TestEligibility:
    def test_parallel_all_pending_are_eligible(self):
        coordinator = SignerCoordinator(signers('pending', 'pending', 'pending'))
        assert [s.id for s in coordinator.eligible_signers()] == [1, 2, 3]

    def test_sequential_only_first_pending_is_eligible(self):
        coordinator = SignerCoordinator(signers('pending', 'pending'), require_sequential=True)
        assert [s.id for s in coordinator.eligible_signers()] == [1]
        assert coordinator.blocking_reason(coordinator.signers[1]) == 'awaiting earlier signer'

    def test_sequential_advances_after_signature(self):
        coordinator = SignerCoordinator(signers('signed', 'pending', 'pending'), require_sequential=True)
        assert [s.id for s in coordinator.eligible_signers()] == [2]

    def test_sequential_blocked_by_declined_predecessor(self):
        coordinator = SignerCoordinator(
            signers('declined', 'pending'), require_all=False, require_sequential=True
        )
        assert coordinator.blocking_reason(coordinator.signers[1]) == 'blocked by declined earlier signer'

    def test_signer_who_already_acted_is_blocked(self):
        coordinator = SignerCoordinator(signers('signed', 'declined'))
        assert coordinator.blocking_reason(coordinator.signers[0]) == 'signer already signed'
        assert coordinator.blocking_reason(coordinator.signers[1]) == 'signer already declined'

    def test_orders_by_sequence(self):
        unordered = [
            SimpleNamespace(id='b', sequence=2, status='pending'),
            SimpleNamespace(id='a', sequence=1, status='pending'),
        ]
        coordinator = SignerCoordinator(unordered, require_sequential=True)
        assert [s.id for s in coordinator.eligible_signers()] == ['a']


class TestCompletion:
    def test_and_requires_every_signer(self):
        assert not SignerCoordinator(signers('signed', 'pending')).is_complete()
        assert SignerCoordinator(signers('signed', 'signed')).is_complete()

    def test_or_completes_with_first_signature(self):
        assert SignerCoordinator(signers('pending', 'signed'), require_all=False).is_complete()

    def test_empty_signer_list_never_completes(self):
        assert not SignerCoordinator([]).is_complete()

    def test_signed_count(self):
        assert SignerCoordinator(signers('signed', 'declined', 'signed')).signed_count() == 2

    def test_and_cannot_complete_after_decline(self):
        assert not SignerCoordinator(signers('signed', 'declined')).can_still_complete()

    def test_or_can_complete_while_someone_is_pending(self):
        assert SignerCoordinator(signers('declined', 'pending'), require_all=False).can_still_complete()

    def test_or_cannot_complete_when_everyone_declined(self):
        assert not SignerCoordinator(signers('declined', 'declined'), require_all=False).can_still_complete()

    def test_sequential_or_cannot_complete_behind_a_decline(self):
        coordinator = SignerCoordinator(signers('declined', 'pending'), require_all=False, require_sequential=True)
        assert not coordinator.can_still_complete()
