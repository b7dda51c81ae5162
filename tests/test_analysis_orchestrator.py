"""
Unit tests for the single-pass and sectioned analysis flows.
"""
import json
import pytest
from unittest.mock import Mock, patch

from quote_analyzer.services.analysis_orchestrator import (
    analyze_single_pass,
    analyze_sections,
    parse_analysis,
)
from quote_analyzer.services.prompts import SYNTHESIS_SYSTEM_PROMPT
from quote_analyzer.services.sectioner import Section
from tests.conftest import FakeLLMClient

FILE_INFO = {'name': 'quote.txt', 'size': 512, 'type': 'text/plain'}

THREE_SECTIONS = [
    Section('Scope of Work', 'Scope of Work: replace water heater'),
    Section('Pricing', 'Pricing: $2,800 installed'),
    Section('Warranty', 'Warranty: 6 years parts'),
]


class TestParseAnalysis:

    def test_valid_object(self):
        assert parse_analysis('{"total_cost": 4600}') == {'total_cost': 4600}

    def test_invalid_json_returns_none(self):
        assert parse_analysis('Here is my analysis: fair price') is None

    def test_non_object_json_returns_none(self):
        assert parse_analysis('["cost", "quality"]') is None


class TestSinglePass:
    """One structured call over the whole quote."""

    def test_returns_parsed_json_with_warnings(self):
        llm = FakeLLMClient(responses=[json.dumps({'overall_assessment': 'fair', 'red_flags': []})])

        analysis = analyze_single_pass('quote text', llm, FILE_INFO, warnings=['Limited content detected'])

        assert analysis == {
            'overall_assessment': 'fair',
            'red_flags': [],
            'processing_warnings': ['Limited content detected'],
        }
        assert llm.calls[0]['json_mode'] is True
        assert llm.calls[0]['user_prompt'] == 'quote text'

    def test_no_warnings_key_without_warnings(self):
        llm = FakeLLMClient(responses=['{"overall_assessment": "fair"}'])

        analysis = analyze_single_pass('quote text', llm, FILE_INFO)

        assert 'processing_warnings' not in analysis

    def test_invalid_json_falls_back_to_raw_response(self):
        raw = 'The quote looks reasonable but the warranty is vague.'
        llm = FakeLLMClient(responses=[raw])

        analysis = analyze_single_pass('quote text', llm, FILE_INFO, warnings=['Limited content detected'])

        assert analysis == {
            'error': 'Could not parse analysis',
            'raw_response': raw,
            'file_info': FILE_INFO,
        }

    def test_location_is_included_in_prompt(self):
        llm = FakeLLMClient(responses=['{}'])

        analyze_single_pass('quote text', llm, FILE_INFO, location='Austin, TX')

        assert 'Austin, TX' in llm.calls[0]['user_prompt']
        assert llm.calls[0]['user_prompt'].endswith('quote text')

    def test_client_errors_propagate(self):
        llm = FakeLLMClient(responses=[RuntimeError('Rate limit reached')])

        with pytest.raises(RuntimeError, match='Rate limit'):
            analyze_single_pass('quote text', llm, FILE_INFO)


class TestSectionedAnalysis:
    """Per-section calls followed by one synthesis call."""

    @pytest.fixture(autouse=True)
    def three_sections(self):
        with patch('quote_analyzer.services.analysis_orchestrator.split_into_sections',
                   return_value=THREE_SECTIONS) as mock_split:
            yield mock_split

    def test_happy_path(self):
        llm = FakeLLMClient(responses=['scope ok', 'price high', 'warranty ok', 'FINAL REPORT'])
        sleep = Mock()

        result = analyze_sections('full text', llm, sleep=sleep)

        assert result['comprehensive_report'] == 'FINAL REPORT'
        assert result['sections_analyzed'] == 3
        assert result['sections_failed'] == 0
        assert result['section_analyses'] == [
            {'section': 'Scope of Work', 'analysis': 'scope ok', 'status': 'ok'},
            {'section': 'Pricing', 'analysis': 'price high', 'status': 'ok'},
            {'section': 'Warranty', 'analysis': 'warranty ok', 'status': 'ok'},
        ]
        assert len(llm.calls) == 4
        assert llm.calls[-1]['system_prompt'] == SYNTHESIS_SYSTEM_PROMPT

    def test_section_calls_follow_section_order(self):
        llm = FakeLLMClient()

        analyze_sections('full text', llm, sleep=Mock())

        prompts = [call['user_prompt'] for call in llm.calls[:3]]
        assert 'replace water heater' in prompts[0]
        assert '$2,800 installed' in prompts[1]
        assert '6 years parts' in prompts[2]

    def test_fixed_delay_between_section_calls_only(self):
        llm = FakeLLMClient()
        sleep = Mock()

        analyze_sections('full text', llm, delay_seconds=1.0, sleep=sleep)

        assert sleep.call_count == 2
        sleep.assert_called_with(1.0)

    def test_zero_delay_never_sleeps(self):
        sleep = Mock()

        analyze_sections('full text', FakeLLMClient(), delay_seconds=0, sleep=sleep)

        sleep.assert_not_called()

    def test_one_failed_section_still_synthesizes_all_entries(self):
        llm = FakeLLMClient(responses=[
            'scope ok',
            RuntimeError('upstream timeout'),
            'warranty ok',
            'FINAL REPORT',
        ])

        result = analyze_sections('full text', llm, sleep=Mock())

        assert len(llm.calls) == 4
        assert result['sections_analyzed'] == 3
        assert result['sections_failed'] == 1

        failed = result['section_analyses'][1]
        assert failed['section'] == 'Pricing'
        assert failed['status'] == 'error'
        assert failed['analysis'].startswith('Analysis error')

        synthesis_prompt = llm.calls[-1]['user_prompt']
        assert '1. Scope of Work\nscope ok' in synthesis_prompt
        assert '2. Pricing\n' + failed['analysis'] in synthesis_prompt
        assert '3. Warranty\nwarranty ok' in synthesis_prompt

    def test_all_sections_failing_still_synthesizes(self):
        llm = FakeLLMClient(responses=[ValueError('no key')] * 3 + ['partial report'])

        result = analyze_sections('full text', llm, sleep=Mock())

        assert result['sections_failed'] == 3
        assert result['comprehensive_report'] == 'partial report'

    def test_synthesis_failure_propagates(self):
        llm = FakeLLMClient(responses=['a', 'b', 'c', RuntimeError('Rate limit reached on tokens per min')])

        with pytest.raises(RuntimeError, match='tokens per min'):
            analyze_sections('full text', llm, sleep=Mock())

    def test_output_ceilings_are_passed_through(self):
        llm = FakeLLMClient()

        analyze_sections('full text', llm, sleep=Mock(), section_max_tokens=900, synthesis_max_tokens=3000)

        assert [call['max_tokens'] for call in llm.calls] == [900, 900, 900, 3000]
        assert not any(call['json_mode'] for call in llm.calls)

    def test_location_reaches_every_prompt(self):
        llm = FakeLLMClient()

        analyze_sections('full text', llm, location='Denver, CO', sleep=Mock())

        assert all('Denver, CO' in call['user_prompt'] for call in llm.calls)
