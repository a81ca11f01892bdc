import unittest
from collections import OrderedDict
from fractions import Fraction

import pytest

from servicebox import Container, ServiceNotFound, service_id


class Repo:
    pass


class SqlRepo(Repo):
    pass


def test_service_id_is_module_and_qualname():
    assert service_id(Repo) == f"{__name__}.Repo"
    assert service_id(OrderedDict) == "collections.OrderedDict"


class TestGetObjectWithClass(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_returns_instance_registered_under_class_id(self):
        self.cont.add(service_id(Repo), lambda _: SqlRepo())
        repo = self.cont.get_object(Repo)
        assert isinstance(repo, SqlRepo)
        assert repo is self.cont.get_object(Repo)

    def test_raises_type_error_for_wrong_instance(self):
        self.cont.add(service_id(Repo), lambda _: "not a repo")
        with pytest.raises(TypeError, match="not an instance of Repo"):
            self.cont.get_object(Repo)

    def test_raises_service_not_found_when_missing(self):
        with pytest.raises(ServiceNotFound):
            self.cont.get_object(Repo)

    def test_works_for_local_classes(self):
        class Local: ...

        self.cont.add(service_id(Local), lambda _: Local())
        assert isinstance(self.cont.get_object(Local), Local)


class TestGetObjectWithDottedPath(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_returns_instance_for_importable_class_name(self):
        self.cont.add("collections.OrderedDict", lambda _: OrderedDict(a=1))
        assert self.cont.get_object("collections.OrderedDict") == OrderedDict(a=1)

    def test_raises_type_error_for_wrong_instance(self):
        self.cont.add("fractions.Fraction", lambda _: 0.5)
        with pytest.raises(TypeError):
            self.cont.get_object("fractions.Fraction")

    def test_accepts_subclass_instances(self):
        self.cont.add("collections.OrderedDict", lambda _: type("Sub", (OrderedDict,), {})())
        assert isinstance(self.cont.get_object("collections.OrderedDict"), OrderedDict)

    def test_raises_type_error_for_unknown_class(self):
        self.cont.add("collections.NoSuchThing", lambda _: object())
        with pytest.raises(TypeError, match="does not name an importable class"):
            self.cont.get_object("collections.NoSuchThing")

    def test_raises_type_error_for_non_class_attribute(self):
        self.cont.add("os.path.join", lambda _: Fraction(1, 2))
        with pytest.raises(TypeError):
            self.cont.get_object("os.path.join")

    def test_raises_type_error_for_plain_string_id(self):
        self.cont.add("db", lambda _: object())
        with pytest.raises(TypeError):
            self.cont.get_object("db")

    def test_raises_type_error_for_empty_path_segments(self):
        self.cont.add(".x", lambda _: object())
        self.cont.add("collections..OrderedDict", lambda _: OrderedDict())
        with pytest.raises(TypeError, match="does not name an importable class"):
            self.cont.get_object(".x")
        with pytest.raises(TypeError, match="does not name an importable class"):
            self.cont.get_object("collections..OrderedDict")
