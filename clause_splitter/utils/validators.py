"""Validation utilities for training data quality checks."""

from typing import Dict, List

from ..trees.structures import DependencyTree


class TrainingExampleValidator:
    """Validate training examples before they are searched."""

    def validate_tree(self, tree: DependencyTree) -> List[str]:
        issues = []
        if len(tree) == 0:
            issues.append("Empty sentence")
        if not tree.roots:
            issues.append("Tree has no root")
        for root in tree.roots:
            if root not in tree:
                issues.append(f"Root {root} is not a word of the sentence")
        return issues

    def validate_example(self, example) -> Dict:
        """Validate a single example."""
        issues = self.validate_tree(example.tree)
        n_tokens = sum(1 for w in example.tree.words if not w.is_synthetic)

        for name, span in (("subject", example.subject_span), ("object", example.object_span)):
            if len(span) == 0:
                issues.append(f"Empty {name} span {span}")
            elif span.start < 0 or span.end > n_tokens:
                issues.append(f"{name.capitalize()} span {span} outside sentence of {n_tokens} tokens")

        return {'valid': len(issues) == 0, 'issues': issues}

    def validate_dataset(self, examples: List) -> Dict:
        """Validate entire dataset."""
        results = [self.validate_example(ex) for ex in examples]
        valid_count = sum(1 for r in results if r['valid'])
        invalid_examples = [
            {'id': ex.sentence_id, 'issues': r['issues']}
            for ex, r in zip(examples, results) if not r['valid']
        ]

        return {
            'total_examples': len(examples),
            'valid_examples': valid_count,
            'invalid_examples': len(examples) - valid_count,
            'validation_rate': valid_count / len(examples) if examples else 0,
            'issues': invalid_examples
        }
