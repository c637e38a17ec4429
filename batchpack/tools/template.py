from typing import Any

import string

from batchpack import errors


class Template(string.Template):
    delimiter = "@@"


def format_template(tpltext: str, **kwargs: Any) -> str:
    template = Template(tpltext)
    try:
        return template.substitute(kwargs)
    except KeyError as e:
        raise errors.ConfigurationError(
            f"unknown template variable @@{e.args[0]} in {tpltext!r}"
        ) from None
    except ValueError as e:
        raise errors.ConfigurationError(
            f"invalid template {tpltext!r}: {e}"
        ) from None
