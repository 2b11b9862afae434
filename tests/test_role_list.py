from srtlive.role_list import RoleList


class FakeRole:
    def __init__(self, name):
        self.name = name
        self.uninit_calls = 0

    def uninit(self):
        self.uninit_calls += 1


def test_fifo_order():
    roles = RoleList()
    a, b = FakeRole("a"), FakeRole("b")
    roles.push(a)
    roles.push(b)
    assert len(roles) == 2
    assert roles.pop() is a
    assert roles.pop() is b
    assert roles.pop() is None


def test_none_is_ignored():
    roles = RoleList()
    roles.push(None)
    assert len(roles) == 0


def test_erase_uninits_all():
    roles = RoleList()
    items = [FakeRole(str(i)) for i in range(3)]
    for item in items:
        roles.push(item)
    roles.erase()
    assert len(roles) == 0
    assert [r.uninit_calls for r in items] == [1, 1, 1]
    assert roles.pop() is None