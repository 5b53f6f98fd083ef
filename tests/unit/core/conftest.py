"""Shared fixtures for core unit tests"""

import pytest

from mdcbridge.core.highlight import Highlighter
from mdcbridge.core.markdown.parse import make_parser


SAMPLE_MD = """\
# Getting Started

Some **bold** and *italic* text with `code`.

- one
- two

```python [main.py]
print("hello")
```

---

Footer paragraph.
"""

SAMPLE_FM_MD = """\
---
title: Test Doc
tags:
- a
- b
---

# Title

Body content.
"""

SAMPLE_MDC = """\
::card{.featured}
#title
My Title

#default
Body with a :badge[New]{type="info"} badge and {{ user.name || Guest }}.
::
"""


@pytest.fixture(name="parser")
def parser_fixture():
    return make_parser()


@pytest.fixture(name="highlighter")
def highlighter_fixture():
    return Highlighter()


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD


@pytest.fixture(name="sample_fm_md")
def sample_fm_md_fixture():
    return SAMPLE_FM_MD


@pytest.fixture(name="sample_mdc")
def sample_mdc_fixture():
    return SAMPLE_MDC
