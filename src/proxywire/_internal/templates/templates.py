from textwrap import dedent

MODULE_TEMPLATE = dedent(
    """
    {{ module_docstring_block }}

    {{ class_block }}
    """,
).strip()

CLASS_TEMPLATE = dedent(
    """
    class {{ class_name }}(_proxywire_decorator, _proxywire_contract_class):
    {{ class_docstring_block }}

        _proxy_contract = _proxywire_contract
        _proxy_methods = _proxywire_methods

    {{ init_method_block }}
    {% for member_block in member_blocks %}

    {{ member_block }}
    {% endfor %}
    """,
).strip()

INIT_METHOD_TEMPLATE = dedent(
    """
    def __init__({{ signature }}) -> None:
        _proxywire_decorator.__init__({{ arguments }})
    """,
).strip()

METHOD_TEMPLATE = dedent(
    """
    def {{ function_name }}({{ signature }}):
    {% if returns_value %}
        return {{ receiver }}._invoke({{ index }}, {{ args_expression }}, {{ kwargs_expression }}, {{ type_arguments_expression }})
    {% else %}
        {{ receiver }}._invoke({{ index }}, {{ args_expression }}, {{ kwargs_expression }}, {{ type_arguments_expression }})
    {% endif %}
    """,
).strip()

PROPERTY_TEMPLATE = dedent(
    """
    {% for accessor_block in accessor_blocks %}
    {{ accessor_block }}

    {% endfor %}
    {{ name }} = property({{ getter }}, {{ setter }}, {{ deleter }}, {{ doc }})
    {% for function_name in accessor_function_names %}
    del {{ function_name }}
    {% endfor %}
    """,
).strip()
