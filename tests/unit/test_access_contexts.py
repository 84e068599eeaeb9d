"""Unit tests for per-document role grants"""

import pytest

from docflow.errors import NotFoundError
from docflow.models import AccessContext


@pytest.fixture
def granted(workflow, storage_req):
    """A document plus a named group to grant roles to."""
    document_id = workflow.documents.new(storage_req.doctype, title="Storage #42")
    group_id = workflow.groups.new("RAs")
    return document_id, group_id


class TestGrant:
    """Test granting roles"""

    def test_grant_is_idempotent(self, workflow, storage_req, granted, session_factory):
        """Granting the same tuple twice stores exactly one row"""
        document_id, group_id = granted

        workflow.access_contexts.grant(document_id, group_id, storage_req.approver)
        workflow.access_contexts.grant(document_id, group_id, storage_req.approver)

        with session_factory() as db:
            assert db.query(AccessContext).filter_by(
                document_id=document_id,
                group_id=group_id,
                role_id=storage_req.approver,
            ).count() == 1

    def test_concurrent_grant(self, workflow, storage_req, granted, session_factory, run_concurrently):
        """Racing grants of the same tuple both succeed with one row"""
        document_id, group_id = granted

        outcomes = run_concurrently(
            lambda: workflow.access_contexts.grant(document_id, group_id, storage_req.approver),
            lambda: workflow.access_contexts.grant(document_id, group_id, storage_req.approver),
        )

        assert outcomes == [None, None]
        with session_factory() as db:
            assert db.query(AccessContext).count() == 1

    def test_grant_several_roles(self, workflow, storage_req, granted):
        """One group may hold several roles on a document"""
        document_id, group_id = granted

        workflow.access_contexts.grant(document_id, group_id, storage_req.approver)
        workflow.access_contexts.grant(document_id, group_id, storage_req.author)

        assert workflow.access_contexts.roles_for(document_id, [group_id]) == {
            storage_req.approver,
            storage_req.author,
        }
        assert len(workflow.access_contexts.list_for_document(document_id)) == 2

    def test_unknown_document(self, workflow, storage_req, granted):
        """Grants on unknown documents raise NotFoundError"""
        _, group_id = granted

        with pytest.raises(NotFoundError):
            workflow.access_contexts.grant(999, group_id, storage_req.approver)

    def test_unknown_group(self, workflow, storage_req, granted):
        """Grants to unknown groups raise NotFoundError"""
        document_id, _ = granted

        with pytest.raises(NotFoundError):
            workflow.access_contexts.grant(document_id, 999, storage_req.approver)

    def test_unknown_role(self, workflow, granted):
        """Grants of unknown roles raise NotFoundError"""
        document_id, group_id = granted

        with pytest.raises(NotFoundError):
            workflow.access_contexts.grant(document_id, group_id, 999)


class TestRevoke:
    """Test revoking roles"""

    def test_revoke_removes_grant(self, workflow, storage_req, granted):
        """A revoked role is no longer held"""
        document_id, group_id = granted
        workflow.access_contexts.grant(document_id, group_id, storage_req.approver)

        workflow.access_contexts.revoke(document_id, group_id, storage_req.approver)

        assert workflow.access_contexts.roles_for(document_id, [group_id]) == set()

    def test_revoke_absent_grant_is_noop(self, workflow, storage_req, granted):
        """Revoking a grant that does not exist raises nothing"""
        document_id, group_id = granted

        workflow.access_contexts.revoke(document_id, group_id, storage_req.approver)

        assert workflow.access_contexts.list_for_document(document_id) == []


class TestRolesFor:
    """Test the union-of-roles query"""

    def test_union_over_groups(self, workflow, storage_req, granted):
        """roles_for unites the roles of every given group"""
        document_id, ras = granted
        authors = workflow.groups.new("Authors")
        workflow.access_contexts.grant(document_id, ras, storage_req.approver)
        workflow.access_contexts.grant(document_id, authors, storage_req.author)

        assert workflow.access_contexts.roles_for(document_id, {ras, authors}) == {
            storage_req.approver,
            storage_req.author,
        }
        assert workflow.access_contexts.roles_for(document_id, {authors}) == {storage_req.author}

    def test_empty_group_set(self, workflow, granted):
        """No groups means no roles"""
        document_id, _ = granted

        assert workflow.access_contexts.roles_for(document_id, []) == set()

    def test_grants_are_per_document(self, workflow, storage_req, granted):
        """A grant on one document does not leak to another"""
        document_id, group_id = granted
        other_document = workflow.documents.new(storage_req.doctype)
        workflow.access_contexts.grant(document_id, group_id, storage_req.approver)

        assert workflow.access_contexts.roles_for(other_document, [group_id]) == set()

    def test_groups_with_role(self, workflow, storage_req, granted):
        """groups_with_role answers the directly granted groups"""
        document_id, ras = granted
        admins = workflow.groups.new("Admins")
        workflow.access_contexts.grant(document_id, ras, storage_req.approver)
        workflow.access_contexts.grant(document_id, admins, storage_req.approver)
        workflow.access_contexts.grant(document_id, admins, storage_req.author)

        assert workflow.access_contexts.groups_with_role(document_id, storage_req.approver) == {ras, admins}
        assert workflow.access_contexts.groups_with_role(document_id, storage_req.author) == {admins}
