"""
Seed Curriculum.

Built-in early-learning catalog used when no external catalog is wired in:
- Reading: print concepts, phonological awareness, letters, decoding
- Math: subitizing, counting, addition, time, fact fluency
- Diagnostic probes for the math placement check

Ids are stable UUID strings so persisted states survive restarts.
"""
from __future__ import annotations

from pathfinder.engine.models import (
    DiagnosticProbe,
    Domain,
    EncompassingEdge,
    GateType,
    PrerequisiteEdge,
    Skill,
)


def _skill_id(number: int) -> str:
    return f"00000000-0000-4000-8000-{number:012d}"


def _probe_id(number: int) -> str:
    return f"36000000-0000-4000-8000-{number:012d}"


def _and(*numbers: int) -> tuple[PrerequisiteEdge, ...]:
    return tuple(PrerequisiteEdge(_skill_id(n), GateType.AND) for n in numbers)


def _enc(number: int, weight: float) -> tuple[EncompassingEdge, ...]:
    return (EncompassingEdge(_skill_id(number), weight),)


SKILL_IDS: dict[str, str] = {
    # Reading
    "RD_PRINT_HANDLE": _skill_id(301),
    "RD_ORAL_LISTEN": _skill_id(302),
    "RD_PA_WORD": _skill_id(303),
    "RD_PA_SYLLABLE": _skill_id(304),
    "RD_LN_UPPER": _skill_id(102),
    "RD_LN_LOWER": _skill_id(307),
    "RD_LS_SET1": _skill_id(308),
    "RD_PA_INIT": _skill_id(310),
    "RD_BLEND_2PH": _skill_id(101),
    "RD_SEGMENT_2PH": _skill_id(312),
    "RD_LS_SET2": _skill_id(313),
    "RD_BLEND_3PH": _skill_id(103),
    "RD_SEGMENT_3PH": _skill_id(316),
    "RD_CVC_A": _skill_id(104),
    "RD_CVC_I": _skill_id(317),
    "RD_HFW_L1": _skill_id(105),
    # Math
    "MATH_PK_SUBITIZE_1_4": _skill_id(201),
    "MATH_PK_COUNT_TO_5": _skill_id(202),
    "MATH_K_COUNT_TO_20": _skill_id(203),
    "MATH_K_ADD_WITHIN_5": _skill_id(204),
    "MATH_1_ADD_WITHIN_20": _skill_id(205),
    "MATH_1_TIME_TO_HOUR": _skill_id(206),
    "MATH_1_SPEED_FACTS_0_10": _skill_id(207),
}


# =============================================================================
# Reading
# =============================================================================

READING_SKILLS: list[Skill] = [
    Skill(
        id=_skill_id(301),
        title="Handle books & track print",
        domain=Domain.READING,
        strand="Concepts of Print",
        grade_band="PreK",
        expected_time_seconds=150,
        stage_code="R0",
        description="Hold a book, turn pages and follow print left to right.",
    ),
    Skill(
        id=_skill_id(302),
        title="Listen & retell stories",
        domain=Domain.READING,
        strand="Oral Language",
        grade_band="PreK",
        expected_time_seconds=150,
        prerequisites=_and(301),
        stage_code="R0",
    ),
    Skill(
        id=_skill_id(303),
        title="Word awareness",
        domain=Domain.READING,
        strand="Phonological Awareness",
        grade_band="PreK",
        expected_time_seconds=150,
        prerequisites=_and(301),
        stage_code="R0",
    ),
    Skill(
        id=_skill_id(304),
        title="Clap syllables",
        domain=Domain.READING,
        strand="Phonological Awareness",
        grade_band="PreK",
        expected_time_seconds=150,
        prerequisites=_and(303),
        stage_code="R0",
    ),
    Skill(
        id=_skill_id(102),
        title="Uppercase letter names",
        domain=Domain.READING,
        strand="Alphabet Knowledge",
        grade_band="PreK",
        expected_time_seconds=180,
        prerequisites=_and(301),
        stage_code="R1",
    ),
    Skill(
        id=_skill_id(307),
        title="Lowercase letter names",
        domain=Domain.READING,
        strand="Alphabet Knowledge",
        grade_band="PreK",
        expected_time_seconds=180,
        prerequisites=_and(102),
        stage_code="R1",
    ),
    Skill(
        id=_skill_id(308),
        title="Letter sounds set 1",
        domain=Domain.READING,
        strand="Alphabet Knowledge",
        grade_band="PreK",
        expected_time_seconds=180,
        prerequisites=_and(307),
        stage_code="R1",
    ),
    Skill(
        id=_skill_id(310),
        title="Initial sound isolation",
        domain=Domain.READING,
        strand="Phonological Awareness",
        grade_band="PreK",
        expected_time_seconds=160,
        prerequisites=_and(308),
        stage_code="R1",
    ),
    Skill(
        id=_skill_id(101),
        title="Blend 2 phonemes",
        domain=Domain.READING,
        strand="Phonological Awareness",
        grade_band="PreK",
        expected_time_seconds=170,
        prerequisites=_and(310),
        stage_code="R1",
    ),
    Skill(
        id=_skill_id(312),
        title="Segment 2 phonemes",
        domain=Domain.READING,
        strand="Phonological Awareness",
        grade_band="PreK",
        expected_time_seconds=170,
        prerequisites=_and(101),
        stage_code="R1",
    ),
    Skill(
        id=_skill_id(313),
        title="Letter sounds set 2",
        domain=Domain.READING,
        strand="Alphabet Knowledge",
        grade_band="K",
        expected_time_seconds=190,
        prerequisites=_and(308),
        stage_code="R2",
    ),
    Skill(
        id=_skill_id(103),
        title="Blend 3 phonemes",
        domain=Domain.READING,
        strand="Phonological Awareness",
        grade_band="K",
        expected_time_seconds=200,
        prerequisites=_and(313),
        encompassing=_enc(101, 0.4),
        stage_code="R2",
    ),
    Skill(
        id=_skill_id(316),
        title="Segment 3 phonemes",
        domain=Domain.READING,
        strand="Phonological Awareness",
        grade_band="K",
        expected_time_seconds=200,
        prerequisites=_and(103),
        encompassing=_enc(312, 0.4),
        stage_code="R2",
    ),
    Skill(
        id=_skill_id(104),
        title="Decode CVC short a",
        domain=Domain.READING,
        strand="Phonics & Word Recognition",
        grade_band="K",
        expected_time_seconds=240,
        prerequisites=_and(103, 307),
        encompassing=_enc(103, 0.4),
        stage_code="R2",
    ),
    Skill(
        id=_skill_id(317),
        title="Decode CVC short i",
        domain=Domain.READING,
        strand="Phonics & Word Recognition",
        grade_band="K",
        expected_time_seconds=230,
        prerequisites=_and(104),
        encompassing=_enc(104, 0.5),
        stage_code="R2",
    ),
    Skill(
        id=_skill_id(105),
        title="Sight Word Ladder Level 1",
        domain=Domain.READING,
        strand="High-Frequency Words",
        grade_band="K",
        expected_time_seconds=210,
        prerequisites=_and(307, 301),
        stage_code="R2",
    ),
]


# =============================================================================
# Math
# =============================================================================

MATH_SKILLS: list[Skill] = [
    Skill(
        id=_skill_id(201),
        title="Subitize up to 4",
        domain=Domain.MATH,
        strand="Counting & Cardinality",
        grade_band="PreK",
        expected_time_seconds=150,
        description="Recognize small quantities at a glance without counting.",
    ),
    Skill(
        id=_skill_id(202),
        title="Count to 5",
        domain=Domain.MATH,
        strand="Counting & Cardinality",
        grade_band="PreK",
        expected_time_seconds=180,
        prerequisites=_and(201),
        encompassing=_enc(201, 0.3),
    ),
    Skill(
        id=_skill_id(203),
        title="Count to 20",
        domain=Domain.MATH,
        strand="Counting & Cardinality",
        grade_band="K",
        expected_time_seconds=210,
        prerequisites=_and(202),
        encompassing=_enc(202, 0.4),
    ),
    Skill(
        id=_skill_id(204),
        title="Add within 5",
        domain=Domain.MATH,
        strand="Operations & Algebraic Thinking",
        grade_band="K",
        expected_time_seconds=240,
        prerequisites=_and(202),
        encompassing=_enc(202, 0.4),
    ),
    Skill(
        id=_skill_id(205),
        title="Add within 20",
        domain=Domain.MATH,
        strand="Operations & Algebraic Thinking",
        grade_band="1",
        expected_time_seconds=300,
        prerequisites=_and(204, 203),
        encompassing=_enc(204, 0.5),
    ),
    Skill(
        id=_skill_id(206),
        title="Tell time to the hour",
        domain=Domain.MATH,
        strand="Measurement & Data",
        grade_band="1",
        expected_time_seconds=240,
        prerequisites=_and(203),
    ),
    Skill(
        id=_skill_id(207),
        title="Speed facts 0–10",
        domain=Domain.MATH,
        strand="Operations & Algebraic Thinking",
        grade_band="1",
        expected_time_seconds=180,
        prerequisites=_and(205),
        encompassing=_enc(205, 0.7),
    ),
]

SEED_SKILLS: list[Skill] = [*READING_SKILLS, *MATH_SKILLS]


# =============================================================================
# Diagnostic Probes
# =============================================================================

SEED_DIAGNOSTIC_PROBES: list[DiagnosticProbe] = [
    DiagnosticProbe(
        id=_probe_id(701),
        skill_id=_skill_id(201),
        difficulty=0.2,
        expected_latency_ms=4000,
        stem="How many dots do you see?",
        tags=("math", "subitize"),
    ),
    DiagnosticProbe(
        id=_probe_id(702),
        skill_id=_skill_id(203),
        difficulty=0.35,
        expected_latency_ms=6000,
        stem="Start at {n} and count up five numbers.",
        tags=("math", "counting"),
    ),
    DiagnosticProbe(
        id=_probe_id(703),
        skill_id=_skill_id(204),
        difficulty=0.5,
        expected_latency_ms=5000,
        stem="What is {a} + {b}?",
        tags=("math", "addition"),
    ),
    DiagnosticProbe(
        id=_probe_id(704),
        skill_id=_skill_id(206),
        difficulty=0.6,
        expected_latency_ms=7000,
        stem="What time does the clock show?",
        tags=("math", "time"),
    ),
]
