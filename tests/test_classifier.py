from apitable.classifier import MemberClassifier, method_display_name
from apitable.models import ApiModelBuilder, Category
from apitable.providers.interface import (
    MemberInfo,
    MethodInfo,
    ParameterInfo,
    TypeHandle,
    TypeIntrospectionError,
)


class FakeType(TypeHandle):
    def __init__(
        self,
        name,
        *,
        kind="class",
        generated=False,
        static_fields=(),
        properties=(),
        methods=(),
        fields=(),
        broken=False,
    ):
        self._name = name
        self._kind = kind
        self._generated = generated
        self._static_fields = list(static_fields)
        self._properties = list(properties)
        self._methods = list(methods)
        self._fields = list(fields)
        self._broken = broken

    @property
    def name(self):
        return self._name

    @property
    def is_compiler_generated(self):
        return self._generated

    @property
    def is_enum(self):
        return self._kind == "enum"

    @property
    def is_interface(self):
        return self._kind == "interface"

    @property
    def is_delegate(self):
        return self._kind == "delegate"

    def static_fields(self):
        return self._static_fields

    def properties(self):
        return self._properties

    def methods(self):
        if self._broken:
            raise TypeIntrospectionError(f"Cannot enumerate members of '{self._name}'")
        return self._methods

    def fields(self):
        return self._fields


def classify(*types, logger):
    builder = ApiModelBuilder()
    MemberClassifier(logger=logger).classify_all(types, builder)
    return builder.build()


def test_method_name_lists_type_and_name_pairs():
    method = MethodInfo(
        "Foo", "bool", (ParameterInfo("a", "int"), ParameterInfo("b", "string"))
    )
    assert method_display_name(method) == "Foo( int a string b )"


def test_method_name_without_parameters():
    assert method_display_name(MethodInfo("Bar", "void")) == "Bar( )"


def test_members_follow_fixed_category_order(logger):
    account = FakeType(
        "Account",
        fields=[MemberInfo("Owner", "string"), MemberInfo("Limit", "int")],
        methods=[MethodInfo("Add", "int", (ParameterInfo("x", "int"), ParameterInfo("y", "int")))],
        properties=[MemberInfo("Balance", "decimal")],
        static_fields=[MemberInfo("Limit", "int")],
    )
    model = classify(account, logger=logger)
    (account_entry,) = model.types()

    members = [(m.category, m.name, m.member_type_name) for m in model.members_of(account_entry)]
    assert members == [
        (Category.STATIC_FIELD, "Limit", "int"),
        (Category.PROPERTY, "Balance", "decimal"),
        (Category.METHOD, "Add( int x int y )", "int"),
        (Category.FIELD, "Owner", "string"),
        (Category.FIELD, "Limit", "int"),
    ]
    assert all(m.declared_type_name == "Account" for m in model.members_of(account_entry))


def test_special_name_methods_are_not_catalogued(logger):
    point = FakeType(
        "Point",
        properties=[MemberInfo("X", "int")],
        methods=[
            MethodInfo("get_X", "int", is_special_name=True),
            MethodInfo("op_Addition", "Point", is_special_name=True),
            MethodInfo("ToString", "string"),
        ],
    )
    model = classify(point, logger=logger)

    methods = [m.name for m in model if m.category is Category.METHOD]
    assert methods == ["ToString( )"]


def test_discovery_filters_non_class_types(logger):
    model = classify(
        FakeType("Color", kind="enum"),
        FakeType("IShape", kind="interface"),
        FakeType("Callback", kind="delegate"),
        FakeType("<>c__DisplayClass", generated=True),
        FakeType("Circle"),
        logger=logger,
    )

    assert [t.name for t in model.types()] == ["Circle"]


def test_broken_type_is_skipped_and_scan_continues(logger):
    model = classify(
        FakeType("Before", fields=[MemberInfo("a", "int")]),
        FakeType("Broken", broken=True, fields=[MemberInfo("b", "int")]),
        FakeType("After"),
        logger=logger,
    )

    assert [t.name for t in model.types()] == ["Before", "After"]
    assert [e.name for e in model] == ["Before", "a", "After"]


def test_type_without_members_still_gets_type_entry(logger):
    model = classify(FakeType("Hidden"), logger=logger)

    (hidden,) = model.types()
    assert model.members_of(hidden) == []
