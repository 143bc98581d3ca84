"""End-to-end tests with templates in the shape model chat templates take."""

from __future__ import annotations

import pytest

from chatmpl import Environment, TemplateException

CHATML = (
    "{% for message in messages %}"
    r"{{ '<|im_start|>' + message['role'] + '\n' + message['content'] + '<|im_end|>' + '\n' }}"
    "{% endfor %}"
    r"{% if add_generation_prompt %}{{ '<|im_start|>assistant\n' }}{% endif %}"
)

LLAMA2 = (
    "{% if messages[0]['role'] == 'system' %}"
    "{% set loop_messages = messages[1:] %}{% set system_message = messages[0]['content'] %}"
    "{% else %}"
    "{% set loop_messages = messages %}{% set system_message = false %}"
    "{% endif %}"
    "{% for message in loop_messages %}"
    "{% if (message['role'] == 'user') != (loop.index0 % 2 == 0) %}"
    "{{ raise_exception('Conversation roles must alternate user/assistant/user/assistant/...') }}"
    "{% endif %}"
    "{% if loop.index0 == 0 and system_message != false %}"
    r"{% set content = '<<SYS>>\n' + system_message + '\n<</SYS>>\n\n' + message['content'] %}"
    "{% else %}{% set content = message['content'] %}{% endif %}"
    "{% if message['role'] == 'user' %}"
    "{{ bos_token + '[INST] ' + content.strip() + ' [/INST]' }}"
    "{% elif message['role'] == 'assistant' %}"
    "{{ ' ' + content.strip() + ' ' + eos_token }}"
    "{% endif %}"
    "{% endfor %}"
)

ZEPHYR = r"""{% for message in messages %}
{% if message['role'] == 'user' %}
{{ '<|user|>\n' + message['content'] + eos_token }}
{% elif message['role'] == 'system' %}
{{ '<|system|>\n' + message['content'] + eos_token }}
{% elif message['role'] == 'assistant' %}
{{ '<|assistant|>\n'  + message['content'] + eos_token }}
{% endif %}
{% if loop.last and add_generation_prompt %}
{{ '<|assistant|>' }}
{% endif %}
{% endfor %}"""

TOOLS = """{% if tools %}Tools: {{ tools | map(attribute='function.name') | join(', ') }}
{% endif %}{% for m in messages %}{{ m.role }}: {% if m.tool_calls is defined %}\
{% for call in m.tool_calls %}{{ call.function.name }}({{ call.function.arguments | tojson }})\
{% endfor %}{% else %}{{ m.content }}{% endif %}
{% endfor %}"""

MARK_LAST_USER = """{%- set ns = namespace(last=-1) -%}
{%- for m in messages -%}
  {%- if m.role == 'user' -%}{%- set ns.last = loop.index0 -%}{%- endif -%}
{%- endfor -%}
{%- for m in messages -%}
  {{- m.role | upper }}{% if loop.index0 == ns.last %}*{% endif %}: {{ m.content | trim }}
{% endfor -%}"""


class TestChatML:
    def test_with_generation_prompt(self, env, messages):
        result = env.from_string(CHATML).render(messages=messages[:2], add_generation_prompt=True)
        assert result == (
            "<|im_start|>system\nYou are helpful.<|im_end|>\n"
            "<|im_start|>user\nHi!<|im_end|>\n"
            "<|im_start|>assistant\n"
        )

    def test_without_generation_prompt(self, env, messages):
        result = env.from_string(CHATML).render(messages=messages[1:2])
        assert result == "<|im_start|>user\nHi!<|im_end|>\n"


class TestLlama2:
    def test_system_prompt_folded_into_first_turn(self, env, messages):
        result = env.from_string(LLAMA2).render(messages=messages, bos_token="<s>", eos_token="</s>")
        assert result == (
            "<s>[INST] <<SYS>>\nYou are helpful.\n<</SYS>>\n\nHi! [/INST]"
            " Hello. </s>"
            "<s>[INST] Tell me a joke. [/INST]"
        )

    def test_without_system_prompt(self, env, messages):
        result = env.from_string(LLAMA2).render(
            messages=messages[1:2], bos_token="<s>", eos_token="</s>"
        )
        assert result == "<s>[INST] Hi! [/INST]"

    def test_roles_must_alternate(self, env):
        bad = [{"role": "user", "content": "a"}, {"role": "user", "content": "b"}]
        with pytest.raises(TemplateException, match="must alternate"):
            env.from_string(LLAMA2).render(messages=bad, bos_token="<s>", eos_token="</s>")


class TestZephyr:
    def test_trimmed_layout(self, env_trim, messages):
        result = env_trim.from_string(ZEPHYR).render(
            messages=messages, eos_token="</s>", add_generation_prompt=True
        )
        assert result == (
            "<|system|>\nYou are helpful.</s>\n"
            "<|user|>\nHi!</s>\n"
            "<|assistant|>\nHello.</s>\n"
            "<|user|>\nTell me a joke.</s>\n"
            "<|assistant|>\n"
        )


class TestToolCalls:
    def test_tool_calls_rendered_as_json(self, env):
        messages = [
            {"role": "user", "content": "What's the weather?"},
            {
                "role": "assistant",
                "tool_calls": [
                    {"function": {"name": "get_weather", "arguments": {"city": "Paris"}}}
                ],
            },
            {"role": "tool", "content": "18C"},
        ]
        tools = [{"type": "function", "function": {"name": "get_weather"}}]
        result = env.from_string(TOOLS).render(messages=messages, tools=tools)
        assert result == (
            "Tools: get_weather\n"
            "user: What's the weather?\n"
            'assistant: get_weather({"city": "Paris"})\n'
            "tool: 18C\n"
        )

    def test_no_tools(self, env):
        result = env.from_string(TOOLS).render(messages=[{"role": "user", "content": "hi"}])
        assert result == "user: hi\n"


class TestWhitespaceControl:
    def test_namespace_marks_last_user_turn(self, env, messages):
        result = env.from_string(MARK_LAST_USER).render(messages=messages)
        assert result == (
            "SYSTEM: You are helpful.\n"
            "USER: Hi!\n"
            "ASSISTANT: Hello.\n"
            "USER*: Tell me a joke.\n"
        )


class TestReuse:
    def test_one_template_many_conversations(self, messages):
        env = Environment(trim_blocks=True, lstrip_blocks=True)
        template = env.from_string(CHATML)
        first = template.render(messages=messages[:1])
        second = template.render(messages=messages[1:2])
        assert first == "<|im_start|>system\nYou are helpful.<|im_end|>\n"
        assert second == "<|im_start|>user\nHi!<|im_end|>\n"
