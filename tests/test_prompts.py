# File: tests/test_prompts.py
"""
Test the prompt builders.
"""

from promptframe.catalog import DEFAULT_SECTION
from promptframe.generative import synthesize_frame
from promptframe.intent import StructureType, classify
from promptframe.prompts import (
    build_correction_prompt,
    build_edit_prompt,
    build_system_prompt,
    build_user_message,
)


def test_system_prompt_states_format_and_rules():
    prompt = build_system_prompt(classify("ラーメン構造"))

    assert '"nodes"' in prompt and '"memberLoads"' in prompt
    assert '"x" (fixed)' in prompt
    assert DEFAULT_SECTION.name in prompt
    assert "At most one member between any two nodes" in prompt


def test_load_instruction_follows_load_intent():
    """
    No loads mentioned: the service is told to emit empty load arrays.
    """
    without = build_system_prompt(classify("2層3スパンのラーメン"))
    with_loads = build_system_prompt(classify("2層3スパンのラーメン、梁に等分布荷重"))

    assert '"nodeLoads": []' in without
    assert "member loads" in with_loads
    print("✓ Load instruction depends on the prompt")


def test_portal_frame_guidance():
    prompt = build_system_prompt(classify("門型ラーメン"))
    assert "4 nodes, 3 members" in prompt


def test_truss_guidance_uses_dimensions():
    prompt = build_system_prompt(classify("高さ4m スパン20mのトラス"))
    assert "height 4 m, span 20 m" in prompt


def test_simplified_prompt_is_shorter():
    intent = classify("2層3スパンのラーメン")
    full = build_system_prompt(intent)
    terse = build_system_prompt(intent, simplified=True)
    assert len(terse) < len(full)
    assert "JSON" in terse


def test_edit_prompt_contains_model_and_boundary_note():
    model = synthesize_frame(1, 1)

    keep = build_edit_prompt("move node 4", model, classify("move node 4").boundary_change)
    assert '"nodes"' in keep
    assert "Keep every existing node" in keep

    change = build_edit_prompt("柱脚をピンに変更", model, classify("柱脚をピンに変更").boundary_change)
    assert "ground nodes to p" in change


def test_user_message_depends_on_mode():
    intent = classify("ラーメン")
    model = synthesize_frame(1, 1)

    assert build_user_message("ラーメン", intent) == "ラーメン"
    assert build_user_message("ラーメン", intent, mode='edit') == "ラーメン"
    assert "Current model" in build_user_message("ラーメン", intent, mode='edit', prior_model=model)


def test_correction_prompt_lists_errors():
    model = synthesize_frame(1, 1)
    prompt = build_correction_prompt("トラス", model, ["error one", "error two"], StructureType.TRUSS)

    assert "- error one" in prompt
    assert "- error two" in prompt
    assert "truss" in prompt
