"""
Parsing behavioral tests (token classification, value attachment, help, faults).

Scope
- Validate the FLAGS → REQUIRED → OPTIONAL walk and its result mappings.
- Validate flag value attachment and the required-value sufficiency rule.
- Validate grouped short flags, built-in help synthesis and rendering.
- Validate user-input faults in raise mode (shell=False) and exit mode (shell=True).

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Options, ParsedResult, faults).
"""

from __future__ import annotations

import unittest
import warnings
from unittest import TestCase

from rich.console import Console

import tagopts.faults
import tagopts.options
from tagopts import (
    Options,
    ParsedResult,
    HelpExit,
    FaultCode,
    MalformedTokenError,
    UnknownSwitchError,
    MissingRequiredError,
    UnparsedTokensWarning,
)


def build():
    return (
        Options("copy a file", shell=False, colorful=False)
        .declare_required("file", "the file to read")
        .declare_optional("mode", "how to read it")
        .declare_flag("verbose", "talk more", False)
    )


class TestClassification(TestCase):
    """Behavioral tests for the classifier walk."""

    def testEndToEndScenario(self):
        flags, required, optional = build().parse(["prog", "-v", "input.txt", "fast"])
        self.assertEqual(flags, {"verbose": "true", "help": ""})
        self.assertEqual(required, {"file": "input.txt"})
        self.assertEqual(optional, {"mode": "fast"})

    def testResultIsNamedTuple(self):
        result = build().parse(["prog", "input.txt"])
        self.assertIsInstance(result, ParsedResult)
        self.assertEqual(result.required, {"file": "input.txt"})
        self.assertEqual(result.optional, {})
        self.assertEqual(result.flags["verbose"], "")

    def testProgramNameIsDiscarded(self):
        _, required, _ = build().parse(["-v", "input.txt"])
        self.assertEqual(required, {"file": "input.txt"})

    def testLongFlagForm(self):
        flags, _, _ = build().parse(["prog", "--verbose", "input.txt"])
        self.assertEqual(flags["verbose"], "true")

    def testRequiredFilledInDeclarationOrder(self):
        options = Options(shell=False).declare_required("src").declare_required("dst")
        _, required, _ = options.parse(["prog", "src.txt", "dst.txt"])
        self.assertEqual(required, {"src": "src.txt", "dst": "dst.txt"})

    def testOptionalAdvancesThroughDeclarations(self):
        options = (
            Options(shell=False)
            .declare_required("src")
            .declare_optional("first")
            .declare_optional("second")
        )
        _, required, optional = options.parse(["prog", "src.txt", "fast", "slow"])
        self.assertEqual(required, {"src": "src.txt"})
        self.assertEqual(optional, {"first": "fast", "second": "slow"})

    def testOptionalWithoutRequired(self):
        options = Options(shell=False).declare_optional("first").declare_optional("second")
        _, required, optional = options.parse(["prog", "fast"])
        self.assertEqual(required, {})
        self.assertEqual(optional, {"first": "fast"})

    def testSurplusTokensWarnAndAreIgnored(self):
        options = Options(shell=False).declare_required("src")
        with self.assertWarns(UnparsedTokensWarning):
            _, required, optional = options.parse(["prog", "src.txt", "fast", "slow"])
        self.assertEqual(required, {"src": "src.txt"})
        self.assertEqual(optional, {})

    def testFlagsAfterValuesAreValues(self):
        options = Options(shell=False).declare_required("src").declare_flag("verbose", "", False)
        flags, required, _ = options.parse(["prog", "src.txt"])
        self.assertEqual(flags["verbose"], "")
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            flags, required, _ = options.parse(["prog", "src.txt", "-v"])
        self.assertEqual(flags["verbose"], "")
        self.assertEqual(required, {"src": "src.txt"})

    def testRepeatedFlagKeepsLastValue(self):
        options = Options(shell=False).declare_flag("name")
        flags, _, _ = options.parse(["prog", "--name", "a", "--name", "b"])
        self.assertEqual(flags["name"], "b")


class TestValueAttachment(TestCase):
    """Behavioral tests for flags that take a value."""

    def options(self):
        return Options(shell=False).declare_flag("name").declare_required("req")

    def testValueAttachedWhenRequiredStillSatisfied(self):
        flags, required, _ = self.options().parse(["prog", "--name", "X", "req1"])
        self.assertEqual(flags["name"], "X")
        self.assertEqual(required, {"req": "req1"})

    def testValueNotStolenFromRequired(self):
        flags, required, _ = self.options().parse(["prog", "--name", "req1"])
        self.assertEqual(flags["name"], "true")
        self.assertEqual(required, {"req": "req1"})

    def testShortFormAttachesValue(self):
        flags, required, _ = self.options().parse(["prog", "-n", "X", "req1"])
        self.assertEqual(flags["name"], "X")
        self.assertEqual(required, {"req": "req1"})

    def testFlagShapedTokenIsNeverAValue(self):
        options = Options(shell=False).declare_flag("name").declare_flag("verbose", "", False)
        flags, _, _ = options.parse(["prog", "--name", "-v"])
        self.assertEqual(flags, {"name": "true", "verbose": "true", "help": ""})

    def testFlagWinsOverOptional(self):
        options = Options(shell=False).declare_flag("name").declare_optional("extra")
        flags, _, optional = options.parse(["prog", "--name", "X"])
        self.assertEqual(flags["name"], "X")
        self.assertEqual(optional, {})

    def testPresenceFlagNeverTakesValue(self):
        options = Options(shell=False).declare_flag("verbose", "", False).declare_optional("extra")
        flags, _, optional = options.parse(["prog", "--verbose", "late"])
        self.assertEqual(flags["verbose"], "true")
        self.assertEqual(optional, {"extra": "late"})

    def testTrailingFlagWithoutValue(self):
        flags, _, _ = Options(shell=False).declare_flag("name").parse(["prog", "--name"])
        self.assertEqual(flags["name"], "true")


class TestShortGroups(TestCase):
    """Behavioral tests for grouped short flags (-abc)."""

    def testGroupSetsEveryFlag(self):
        options = Options(shell=False).declare_short_flag("alpha").declare_short_flag("beta")
        flags, _, _ = options.parse(["prog", "-ab"])
        self.assertEqual(flags["alpha"], "true")
        self.assertEqual(flags["beta"], "true")

    def testGroupNeverConsumesValue(self):
        options = (
            Options(shell=False)
            .declare_short_flag("alpha", "", True)
            .declare_short_flag("beta", "", True)
            .declare_optional("extra")
        )
        flags, _, optional = options.parse(["prog", "-ab", "value"])
        self.assertEqual(flags["alpha"], "true")
        self.assertEqual(flags["beta"], "true")
        self.assertEqual(optional, {"extra": "value"})

    def testGroupWithUnknownCharacterRaises(self):
        options = Options(shell=False).declare_short_flag("alpha")
        with self.assertRaises(UnknownSwitchError) as context:
            options.parse(["prog", "-az"])
        self.assertEqual(context.exception.options["code"], FaultCode.UNKNOWN_SWITCH)


class TestFaults(TestCase):
    """Behavioral tests for user-input faults."""

    def testLoneDashIsMalformed(self):
        with self.assertRaises(MalformedTokenError):
            build().parse(["prog", "-"])

    def testLoneDoubleDashIsMalformed(self):
        with self.assertRaises(MalformedTokenError):
            build().parse(["prog", "--"])

    def testEmptyTokenIsMalformed(self):
        options = Options(shell=False).declare_required("file")
        with self.assertRaises(MalformedTokenError) as context:
            options.parse(["prog", ""])
        self.assertEqual(context.exception.options["code"], FaultCode.MALFORMED_TOKEN)
        self.assertEqual(context.exception.options["index"], 0)

    def testShortTokenWhileScanningFlagsIsMalformed(self):
        with self.assertRaises(MalformedTokenError):
            build().parse(["prog", "-v", "x"])

    def testShortTokensAfterFlagsAreValues(self):
        options = Options(shell=False).declare_required("src").declare_required("dst")
        _, required, _ = options.parse(["prog", "src.txt", "x"])
        self.assertEqual(required, {"src": "src.txt", "dst": "x"})

    def testUnknownLongFlag(self):
        with self.assertRaises(UnknownSwitchError) as context:
            build().parse(["prog", "--verbos", "input.txt"])
        self.assertIn("--verbose", context.exception.options["suggestions"])
        self.assertIn("did you mean", context.exception.options["hint"])

    def testUnknownShortFlag(self):
        with self.assertRaises(UnknownSwitchError):
            build().parse(["prog", "-x", "input.txt"])

    def testLongFormOfShortOnlyFlagIsUnknown(self):
        options = Options(shell=False).declare_short_flag("quiet", "", False)
        with self.assertRaises(UnknownSwitchError):
            options.parse(["prog", "--quiet"])

    def testNotEnoughTokensForRequired(self):
        options = Options(shell=False).declare_required("src").declare_required("dst")
        with self.assertRaises(MissingRequiredError) as context:
            options.parse(["prog", "src.txt"])
        self.assertIn("not all required values are given", context.exception.message)

    def testOnlyFlagsWithRequiredDeclared(self):
        with self.assertRaises(MissingRequiredError):
            build().parse(["prog", "-v"])

    def testNoTokensWithRequiredDeclared(self):
        with self.assertRaises(MissingRequiredError):
            build().parse(["prog"])

    def testShellModeExitsWithFailure(self):
        options = Options(shell=True, colorful=False).declare_flag("verbose", "", False)
        with tagopts.faults.console.capture() as capture:
            with self.assertRaises(SystemExit) as context:
                options.parse(["prog", "--nope"])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("unknown flag '--nope'", capture.get())

    def testArgvMustBeSequenceOfStrings(self):
        with self.assertRaises(TypeError):
            build().parse("prog input.txt")
        with self.assertRaises(TypeError):
            build().parse(["prog", 3])


class TestHelp(TestCase):
    """Behavioral tests for the built-in help flag."""

    def testHelpSynthesizedWithBothForms(self):
        options = build()
        options.parse(["prog", "input.txt"])
        self.assertEqual(options.flags["help"].forms(), ("-h", "--help"))
        self.assertFalse(options.flags["help"].takes_value)

    def testShortHelpRaisesHelpExit(self):
        with tagopts.options.console.capture():
            with self.assertRaises(HelpExit):
                build().parse(["prog", "-h"])

    def testHelpWinsOverMissingRequired(self):
        with tagopts.options.console.capture():
            with self.assertRaises(HelpExit):
                build().parse(["prog", "--help"])

    def testHelpIsLongOnlyWhenShortTaken(self):
        options = Options(shell=False).declare_flag("host")
        flags, _, _ = options.parse(["prog", "-h", "example.org"])
        self.assertEqual(flags["host"], "example.org")
        self.assertEqual(options.flags["help"].forms(), ("--help",))
        with tagopts.options.console.capture():
            with self.assertRaises(HelpExit):
                options.parse(["prog", "--help"])

    def testUserHelpFlagIsKept(self):
        options = Options(shell=False).declare_short_flag("help", "custom help", False).declare_long_flag("help")
        options.parse(["prog"])
        self.assertEqual(options.flags["help"].descr, "custom help")
        self.assertEqual(options.flags["help"].forms(), ("-h", "--help"))

    def testShellModeExitsWithSuccess(self):
        options = Options(shell=True, colorful=False)
        with tagopts.options.console.capture():
            with self.assertRaises(SystemExit) as context:
                options.parse(["prog", "-h"])
        self.assertEqual(context.exception.code, 0)

    def testHelpRendering(self):
        options = build()
        with tagopts.options.console.capture():
            with self.assertRaises(HelpExit):
                options.parse(["prog", "-h"])
        console = Console(color_system=None, force_terminal=False, width=100)
        with console.capture() as capture:
            console.print(options.usage())
        output = capture.get()
        self.assertIn("copy a file", output)
        self.assertIn("usage: prog [OPTIONS] <FILE> [MODE]", output)
        self.assertIn("args:", output)
        self.assertIn("the file to read", output)
        self.assertIn("options:", output)
        self.assertIn("-v,", output)
        self.assertIn("--verbose", output)
        self.assertIn("--help", output)

    def testHelpRenderingAlignsDescriptions(self):
        options = (
            Options(shell=False, colorful=False)
            .declare_required("a", "first")
            .declare_optional("longer", "second")
        )
        console = Console(color_system=None, force_terminal=False, width=100)
        with console.capture() as capture:
            console.print(options.usage())
        lines = capture.get().splitlines()
        first = next(line for line in lines if "first" in line)
        second = next(line for line in lines if "second" in line)
        self.assertEqual(first.index("first"), second.index("second"))


if __name__ == "__main__":
    unittest.main()
