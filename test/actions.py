"""
Actions module behavioral tests (declaration, collisions, freezing, composition).

Scope
- Validate keyword normalization and spec registration order.
- Validate the shared field/flag name space in both insertion orders.
- Validate freezing on insertion and single ownership of actions.
- Validate callback binding and the action() factory/decorator.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from unittest import TestCase

from rich.text import Text

from arbor import Action, Argument, Field, Flag, Registry, action
from arbor import (
    EmptyNameError,
    NameCollisionError,
    DuplicateKeywordError,
    FrozenActionError,
    AttachedActionError,
    SchemaError,
)


class TestActionDeclaration(TestCase):
    """Behavioral tests for building actions."""

    def testKeywordIsTrimmed(self):
        self.assertEqual(Action("  deploy ").keyword, "deploy")

    def testEmptyKeywordRejected(self):
        with self.assertRaises(EmptyNameError):
            Action("  ")

    def testNonStringKeywordRejected(self):
        with self.assertRaises(TypeError):
            Action(1)  # type: ignore[arg-type]

    def testDescrAcceptsText(self):
        descr = Text("ship a build")
        self.assertIs(Action("deploy", descr).descr, descr)

    def testNonStringDescrRejected(self):
        with self.assertRaises(TypeError):
            Action("deploy", 1)  # type: ignore[arg-type]

    def testChainingReturnsAction(self):
        deploy = Action("deploy")
        self.assertIs(deploy.argument(Argument("target")), deploy)
        self.assertIs(deploy.field(Field("env", "e")), deploy)
        self.assertIs(deploy.flag(Flag("verbose", "v")), deploy)

    def testArgumentOrderIsDeclarationOrder(self):
        copy = Action("copy").argument(Argument("source")).argument(Argument("destination"))
        self.assertEqual([argument.title for argument in copy.arguments], ["source", "destination"])

    def testConstructorShorthand(self):
        deploy = Action(
            "deploy",
            "ship a build",
            arguments=[Argument("target")],
            fields=[Field("env", "e", default="prod")],
            flags=[Flag("verbose", "v")],
            children=[Action("rollback")],
            callback=print,
        )
        self.assertEqual(deploy.descr, "ship a build")
        self.assertEqual(list(deploy.fields), ["env"])
        self.assertEqual(list(deploy.flags), ["verbose"])
        self.assertEqual(set(deploy.switches), {"env", "e", "verbose", "v"})
        self.assertEqual(list(deploy.children), ["rollback"])
        self.assertIs(deploy.callback, print)

    def testWrongSpecTypesRejected(self):
        deploy = Action("deploy")
        with self.assertRaises(TypeError):
            deploy.argument(Field("env"))  # type: ignore[arg-type]
        with self.assertRaises(TypeError):
            deploy.field(Flag("verbose"))  # type: ignore[arg-type]
        with self.assertRaises(TypeError):
            deploy.flag(Argument("target"))  # type: ignore[arg-type]

    def testViewsAreReadOnly(self):
        deploy = Action("deploy", fields=[Field("env")])
        self.assertIsInstance(deploy.arguments, tuple)
        with self.assertRaises(TypeError):
            deploy.fields["other"] = Field("other")  # type: ignore[index]


class TestNameCollisions(TestCase):
    """The field/flag name space is shared and checked four ways."""

    def testShortVersusShortFieldFirst(self):
        run = Action("run").field(Field("value", "v"))
        with self.assertRaises(NameCollisionError):
            run.flag(Flag("verbose", "v"))

    def testShortVersusShortFlagFirst(self):
        run = Action("run").flag(Flag("verbose", "v"))
        with self.assertRaises(NameCollisionError):
            run.field(Field("value", "v"))

    def testTitleVersusTitle(self):
        run = Action("run").flag(Flag("force"))
        with self.assertRaises(NameCollisionError):
            run.field(Field("force"))

    def testTitleVersusShort(self):
        run = Action("run").flag(Flag("x"))
        with self.assertRaises(NameCollisionError):
            run.field(Field("xray", "x"))

    def testShortVersusTitle(self):
        run = Action("run").field(Field("xray", "x"))
        with self.assertRaises(NameCollisionError):
            run.flag(Flag("x"))

    def testOwnTitleAndShortCollide(self):
        with self.assertRaises(NameCollisionError):
            Action("run").flag(Flag("v", "v"))

    def testFailedInsertLeavesNoTrace(self):
        run = Action("run").flag(Flag("verbose", "v"))
        with self.assertRaises(NameCollisionError):
            run.field(Field("values", "v"))
        self.assertNotIn("values", run.switches)
        self.assertNotIn("values", run.fields)

    def testCollisionIsValueError(self):
        run = Action("run").flag(Flag("verbose", "v"))
        with self.assertRaises(ValueError):
            run.flag(Flag("verbose"))

    def testArgumentsDoNotCollideWithSwitches(self):
        run = Action("run").argument(Argument("verbose")).flag(Flag("verbose"))
        self.assertEqual(len(run.arguments), 1)


class TestComposition(TestCase):
    """Behavioral tests for children, freezing and ownership."""

    def testAttachFreezesChild(self):
        parent = Action("parent")
        child = parent.action(Action("child"))
        self.assertTrue(child.frozen)
        self.assertFalse(parent.frozen)
        with self.assertRaises(FrozenActionError):
            child.flag(Flag("late"))

    def testInsertFreezesAction(self):
        deploy = Action("deploy")
        Registry().insert(deploy)
        self.assertTrue(deploy.frozen)
        for mutate in (
            lambda: deploy.argument(Argument("target")),
            lambda: deploy.field(Field("env")),
            lambda: deploy.flag(Flag("verbose")),
            lambda: deploy.action(Action("rollback")),
            lambda: deploy.bind(print),
        ):
            with self.subTest(mutate=mutate):
                with self.assertRaises(FrozenActionError):
                    mutate()

    def testPendingChildDecoratorRespectsFreeze(self):
        parent = Action("parent")
        decorator = parent.action(keyword="late")
        Registry().insert(parent)
        with self.assertRaises(FrozenActionError):
            decorator(lambda request: None)
        self.assertEqual(list(parent.children), [])

    def testFrozenIsTypeError(self):
        deploy = Action("deploy")
        Registry().insert(deploy)
        with self.assertRaises(TypeError):
            deploy.flag(Flag("verbose"))

    def testDuplicateChildKeyword(self):
        parent = Action("parent", children=[Action("child")])
        with self.assertRaises(DuplicateKeywordError):
            parent.action(Action("child"))

    def testDuplicateRegistryKeyword(self):
        registry = Registry()
        registry.insert(Action("deploy"))
        with self.assertRaises(DuplicateKeywordError):
            registry.insert(Action("deploy"))

    def testRejectedDuplicateStaysUsable(self):
        parent = Action("parent", children=[Action("child")])
        orphan = Action("child")
        with self.assertRaises(DuplicateKeywordError):
            parent.action(orphan)
        self.assertFalse(orphan.frozen)
        Action("other").action(orphan)
        self.assertTrue(orphan.frozen)

    def testActionAttachesOnlyOnce(self):
        child = Action("child")
        Action("first").action(child)
        with self.assertRaises(AttachedActionError):
            Action("second").action(child)
        with self.assertRaises(AttachedActionError):
            Registry().insert(child)

    def testSchemaErrorsShareBase(self):
        with self.assertRaises(SchemaError):
            Action("")

    def testNonActionChildRejected(self):
        with self.assertRaises(TypeError):
            Action("parent").action("child")  # type: ignore[arg-type]

    def testExistingChildWithMetadataRejected(self):
        with self.assertRaises(TypeError):
            Action("parent").action(Action("child"), "descr")


class TestCallbacks(TestCase):
    """Behavioral tests for bind() and the action() factory."""

    def testBindOnlyOnce(self):
        deploy = Action("deploy")
        self.assertIs(deploy.bind(print), print)
        with self.assertRaises(TypeError):
            deploy.bind(repr)

    def testBindRequiresCallable(self):
        with self.assertRaises(TypeError):
            Action("deploy").bind("print")  # type: ignore[arg-type]

    def testFactoryFromFunction(self):
        def deploy(request):
            """Ship a build."""

        created = action(deploy, arguments=[Argument("target")])
        self.assertEqual(created.keyword, "deploy")
        self.assertEqual(created.descr, "Ship a build.")
        self.assertIs(created.callback, deploy)
        self.assertEqual(len(created.arguments), 1)

    def testFactoryDecoratorWithKeyword(self):
        @action(keyword="ship", flags=[Flag("force", "f")])
        def deploy(request):
            pass

        self.assertEqual(deploy.keyword, "ship")
        self.assertIsNone(deploy.descr)
        self.assertIn("f", deploy.switches)

    def testChildDecorator(self):
        deploy = Action("deploy")

        @deploy.action
        def rollback(request):
            """Undo the last deployment."""

        self.assertIs(deploy.children["rollback"], rollback)
        self.assertEqual(rollback.descr, "Undo the last deployment.")
        self.assertTrue(rollback.frozen)

    def testChildDecoratorWithMetadata(self):
        deploy = Action("deploy")

        @deploy.action(keyword="undo", arguments=[Argument("version")])
        def rollback(request):
            pass

        self.assertEqual(list(deploy.children), ["undo"])
        self.assertEqual(rollback.arguments[0].title, "version")

    def testFactoryRequiresCallable(self):
        with self.assertRaises(TypeError):
            action(keyword="x")("not callable")  # type: ignore[arg-type]


class TestRepresentation(TestCase):

    def testRepr(self):
        text = repr(Action("deploy", "ship a build"))
        self.assertTrue(text.startswith("action(keyword='deploy', descr='ship a build'"))
        self.assertNotIn("callback", text)


if __name__ == '__main__':
    unittest.main()
