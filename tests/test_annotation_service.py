import pytest

from boardguru.core.exceptions import AuthorizationException, NotFoundException, ValidationException


@pytest.fixture
def service(backend):
    return backend.annotation_service()


@pytest.fixture
def asset(backend, member, organization):
    return backend.asset_service().upload_asset(
        organization["organization_id"], member["user_id"], "pack.pdf", b"%PDF", "application/pdf",
        title="Board Pack"
    )


def comment(service, asset, user, text="Check this figure", page=2):
    return service.create_annotation(asset["asset_id"], user["user_id"], {
        "annotation_type": "comment",
        "page_number": page,
        "comment_text": text,
        "position": {"x": 10, "y": 20, "width": 100, "height": 12},
    })


class TestCreate:
    def test_highlight_defaults(self, service, asset, member):
        annotation = service.create_annotation(asset["asset_id"], member["user_id"], {"page_number": 1})
        assert annotation["annotation_type"] == "highlight"
        assert annotation["color"] == "#FFFF00"
        assert annotation["opacity"] == 0.3
        assert annotation["is_resolved"] is False

    def test_comment_notifies_asset_owner(self, backend, service, asset, owner, member):
        annotation = comment(service, asset, owner)

        notes = backend.notifications.for_user(member["user_id"])
        assert notes[0]["type"] == "annotation_comment"
        assert notes[0]["metadata"]["annotation_id"] == annotation["annotation_id"]

    def test_own_comment_does_not_notify(self, backend, service, asset, member):
        comment(service, asset, member)
        assert backend.notifications.for_user(member["user_id"]) == []

    @pytest.mark.parametrize("data,message", [
        ({"page_number": 0}, "Page number"),
        ({"page_number": 1, "annotation_type": "comment", "comment_text": "  "}, "comment text"),
        ({"page_number": 1, "color": "yellow"}, "hex value"),
        ({"page_number": 1, "opacity": 1.5}, "between 0 and 1"),
        ({"page_number": 1, "annotation_type": "sticker"}, "Invalid annotation type"),
    ])
    def test_validation(self, service, asset, member, data, message):
        with pytest.raises(ValidationException, match=message):
            service.create_annotation(asset["asset_id"], member["user_id"], data)

    def test_outsider_cannot_annotate(self, service, asset, outsider):
        with pytest.raises(AuthorizationException):
            comment(service, asset, outsider)

    def test_shared_user_can_annotate(self, backend, service, asset, member, outsider):
        backend.asset_service().share_asset(asset["asset_id"], member["user_id"], [outsider["user_id"]])
        assert comment(service, asset, outsider)["created_by"] == outsider["user_id"]


class TestThreads:
    def test_replies_are_attached_in_order(self, service, asset, owner, member):
        annotation = comment(service, asset, member)
        service.add_reply(annotation["annotation_id"], owner["user_id"], "Agreed")
        service.add_reply(annotation["annotation_id"], member["user_id"], "Fixed in v2")
        comment(service, asset, member, "Another page", page=5)

        listed = service.list_annotations(asset["asset_id"], owner["user_id"])

        assert [a["page_number"] for a in listed] == [2, 5]
        assert [r["reply_text"] for r in listed[0]["replies"]] == ["Agreed", "Fixed in v2"]
        assert listed[0]["author_name"] == member["full_name"]
        assert listed[1]["replies"] == []

    def test_page_filter(self, service, asset, member):
        comment(service, asset, member, page=2)
        comment(service, asset, member, page=3)
        assert len(service.list_annotations(asset["asset_id"], member["user_id"], page_number=3)) == 1

    def test_reply_notifies_author(self, backend, service, asset, owner, member):
        annotation = comment(service, asset, member)
        service.add_reply(annotation["annotation_id"], owner["user_id"], "Agreed")
        types = [n["type"] for n in backend.notifications.for_user(member["user_id"])]
        assert "annotation_reply" in types

    def test_reply_length(self, service, asset, member):
        annotation = comment(service, asset, member)
        with pytest.raises(ValidationException):
            service.add_reply(annotation["annotation_id"], member["user_id"], "x" * 2001)


class TestChanges:
    def test_only_author_edits(self, service, asset, owner, member):
        annotation = comment(service, asset, member)
        with pytest.raises(AuthorizationException, match="Only the author"):
            service.update_annotation(annotation["annotation_id"], owner["user_id"], {"comment_text": "Edited"})

        updated = service.update_annotation(annotation["annotation_id"], member["user_id"], {"color": "#00FF00"})
        assert updated["color"] == "#00FF00"

    def test_resolve_and_reopen(self, service, asset, owner, member):
        annotation = comment(service, asset, member)

        resolved = service.set_resolved(annotation["annotation_id"], owner["user_id"], True)
        assert resolved["is_resolved"] is True
        assert resolved["resolved_by"] == owner["user_id"]

        reopened = service.set_resolved(annotation["annotation_id"], owner["user_id"], False)
        assert reopened["is_resolved"] is False
        assert reopened["resolved_by"] is None

    def test_admin_can_delete(self, service, asset, owner, member):
        annotation = comment(service, asset, member)
        service.delete_annotation(annotation["annotation_id"], owner["user_id"])
        with pytest.raises(NotFoundException):
            service.add_reply(annotation["annotation_id"], member["user_id"], "Too late")

    def test_other_member_cannot_delete(self, backend, service, asset, member, organization):
        colleague = backend.add_user("colleague@acme.test")
        backend.organizations.add_member({"organization_id": organization["organization_id"],
                                          "user_id": colleague["user_id"], "role": "member"})
        annotation = comment(service, asset, member)
        with pytest.raises(AuthorizationException):
            service.delete_annotation(annotation["annotation_id"], colleague["user_id"])
