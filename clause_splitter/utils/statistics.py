"""Statistics module for training data analysis."""

import json
from collections import Counter
from pathlib import Path
from typing import Dict, List


def feature_template(feature: str) -> str:
    """Feature name without its values, e.g. ``simple&edge:nsubj`` -> ``simple&edge``."""
    return "&".join(part.split(":", 1)[0] for part in feature.split("&"))


class DatasetStatistics:
    """Compute statistics of a weighted training dataset and save them to JSON."""

    def compute_statistics(self, dataset, examples: List = ()) -> Dict:
        """Compute label, weight and feature statistics using Counter."""
        labels = [d.label for d in dataset]
        weights = [d.weight for d in dataset]
        templates = Counter(
            feature_template(name) for d in dataset for name in d.features
        )
        actions = Counter(
            name.split("&", 1)[0] for d in dataset for name in d.features
        )
        lengths = [len(ex.tree) for ex in examples]
        n_positive = sum(labels)

        return {
            'total_examples': len(examples),
            'total_datums': len(labels),
            'label_distribution': {
                'positive': n_positive,
                'negative': len(labels) - n_positive,
                'positive_rate': n_positive / len(labels) if labels else 0,
            },
            'weight_stats': {
                'total_weight': sum(weights),
                'min_weight': min(weights) if weights else 0,
                'max_weight': max(weights) if weights else 0,
            },
            'sentence_length_stats': {
                'avg_words': sum(lengths) / len(lengths) if lengths else 0,
                'min_words': min(lengths) if lengths else 0,
                'max_words': max(lengths) if lengths else 0,
            },
            'action_distribution': dict(actions),
            'feature_templates': dict(templates.most_common()),
            'distinct_features': len({name for d in dataset for name in d.features}),
        }

    def save_statistics(self, stats: Dict, output_path: str) -> None:
        """Save statistics to JSON file."""
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(stats, f, indent=2, ensure_ascii=False)

    def print_summary(self, stats: Dict) -> None:
        """Print a formatted summary of statistics."""
        print(f"\n{'='*60}\nTRAINING DATA STATISTICS SUMMARY\n{'='*60}")
        print(f"\nTraining sentences: {stats['total_examples']}")
        print(f"Datums: {stats['total_datums']}")

        labels = stats['label_distribution']
        print("\nLabel Distribution:")
        print(f"  Positive: {labels['positive']} ({labels['positive_rate']*100:.2f}%)")
        print(f"  Negative: {labels['negative']}")

        sent = stats['sentence_length_stats']
        print("\nSentence Length Statistics:")
        print(f"  Average words: {sent['avg_words']:.2f}")
        print(f"  Range: {sent['min_words']}-{sent['max_words']} words")

        print("\nAction Distribution:")
        for action, count in sorted(stats['action_distribution'].items(), key=lambda x: x[1], reverse=True):
            print(f"  {action}: {count}")

        print(f"\nDistinct features: {stats['distinct_features']}")
        print("Top feature templates:")
        for template, count in list(stats['feature_templates'].items())[:10]:
            print(f"  {template}: {count}")

        print(f"\n{'='*60}\n")
