"""
PlainStep Feature Parser

Line-oriented reader for Gherkin feature files. Supports feature and
scenario tags, a free-text feature description, one Background block and
any number of Scenario blocks. Blank lines and ``#`` comments are ignored.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from plainstep.core.exceptions import FeatureParseError
from plainstep.core.models import Background, Feature, Scenario, Step

logger = logging.getLogger(__name__)

STEP_KEYWORDS = ("Given", "When", "Then", "And", "But")
FEATURE_PREFIX = "Feature:"
BACKGROUND_PREFIX = "Background:"
SCENARIO_PREFIX = "Scenario:"


@dataclass
class _Line:
    text: str
    number: int


def parse_tags(line: str) -> list[str]:
    return [token for token in line.split() if token.startswith("@")]


def is_step(text: str) -> bool:
    return any(text.startswith(f"{keyword} ") for keyword in STEP_KEYWORDS)


def all_tags(features: Iterable[Feature]) -> list[str]:
    """Unique feature and scenario tags in first-seen order."""
    seen: dict[str, None] = {}
    for feature in features:
        for tag in feature.tags:
            seen.setdefault(tag, None)
        for scenario in feature.scenarios:
            for tag in scenario.tags:
                seen.setdefault(tag, None)
    return list(seen)


class FeatureParser:
    """Parses .feature files into Feature records."""

    def parse_file(self, file_path: str) -> Feature:
        path = Path(file_path)
        if not path.is_file():
            raise FeatureParseError(f"Feature file not found: {file_path}", file_path=file_path)
        return self.parse_content(path.read_text(encoding="utf-8"), str(path))

    def parse_directory(self, dir_path: str) -> list[Feature]:
        """Parse every .feature file directly inside a directory, by name."""
        directory = Path(dir_path)
        if not directory.is_dir():
            raise FeatureParseError(f"Feature directory not found: {dir_path}", file_path=dir_path)

        features = [self.parse_file(str(p)) for p in sorted(directory.glob("*.feature"))]
        logger.info(f"Parsed {len(features)} feature file(s) from {dir_path}")
        return features

    def parse_content(self, content: str, file_path: str = "") -> Feature:
        """
        Parse feature text.

        Raises:
            FeatureParseError: No Feature line, or tags not followed by a Scenario
        """
        lines = [_Line(text=raw.strip(), number=i) for i, raw in enumerate(content.splitlines(), start=1)]
        feature = Feature(file_path=file_path)
        index = 0

        # Tags and name
        found = False
        while index < len(lines):
            text = lines[index].text
            index += 1
            if text.startswith("@"):
                feature.tags.extend(parse_tags(text))
            elif text.startswith(FEATURE_PREFIX):
                feature.name = text[len(FEATURE_PREFIX):].strip()
                found = True
                break
        if not found:
            raise FeatureParseError("No 'Feature:' line found", file_path=file_path)

        # Description runs until the first blank or structural line
        description: list[str] = []
        while index < len(lines):
            text = lines[index].text
            if not text or text.startswith(("@", BACKGROUND_PREFIX, SCENARIO_PREFIX)):
                break
            if not text.startswith("#"):
                description.append(text)
            index += 1
        feature.description = "\n".join(description) or None

        while index < len(lines):
            text = lines[index].text
            if text.startswith(BACKGROUND_PREFIX):
                feature.background, index = self._parse_background(lines, index, file_path)
            elif text.startswith(("@", SCENARIO_PREFIX)):
                scenario, index = self._parse_scenario(lines, index, file_path)
                feature.scenarios.append(scenario)
            else:
                index += 1

        logger.debug(f"Parsed feature '{feature.name}' with {len(feature.scenarios)} scenario(s)")
        return feature

    def _parse_background(self, lines: list[_Line], start: int, file_path: str) -> tuple[Background, int]:
        background = Background(line=lines[start].number)
        background.steps, index = self._parse_steps(lines, start + 1, file_path)
        return background, index

    def _parse_scenario(self, lines: list[_Line], start: int, file_path: str) -> tuple[Scenario, int]:
        index = start
        tags: list[str] = []
        while index < len(lines) and (lines[index].text.startswith("@") or not lines[index].text):
            tags.extend(parse_tags(lines[index].text))
            index += 1

        if index >= len(lines) or not lines[index].text.startswith(SCENARIO_PREFIX):
            line = lines[index].number if index < len(lines) else lines[-1].number
            raise FeatureParseError(
                f"Expected 'Scenario:' at line {line}",
                file_path=file_path,
                line=line,
            )

        header = lines[index]
        steps, index = self._parse_steps(lines, index + 1, file_path)
        scenario = Scenario(
            name=header.text[len(SCENARIO_PREFIX):].strip(),
            steps=steps,
            tags=tags,
            line=header.number,
        )
        return scenario, index

    def _parse_steps(self, lines: list[_Line], start: int, file_path: str) -> tuple[list[Step], int]:
        steps: list[Step] = []
        index = start
        while index < len(lines):
            line = lines[index]
            if line.text.startswith(("@", SCENARIO_PREFIX, BACKGROUND_PREFIX)):
                break
            if is_step(line.text):
                keyword, _, body = line.text.partition(" ")
                steps.append(Step(keyword=keyword, text=body.strip(), line=line.number))
            elif line.text and not line.text.startswith("#"):
                logger.warning(f"{file_path}:{line.number}: ignoring non-step line: {line.text}")
            index += 1
        return steps, index
