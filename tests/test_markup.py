from sqlconcentration.markup import markdown_to_terminal


def test_markdown_to_terminal() -> None:
    text = "## Overview\n**SELECT** reads `rows`"
    assert markdown_to_terminal(text) == "OVERVIEW\nSELECT reads rows"


def test_markdown_to_terminal_subheadings_and_plain_text() -> None:
    text = "### Tips\nUse <LIMIT> with ORDER BY"
    assert markdown_to_terminal(text) == "TIPS\nUse <LIMIT> with ORDER BY"
