"""Rule contract, expression rules, built-in rules and weight profiles."""
