"""
Train a small network on the heart failure clinical records dataset.

Dataset from https://www.kaggle.com/andrewmvd/heart-failure-clinical-data,
expected at datasets/heart_failure_clinical_records_dataset.csv.
"""
import argparse

from deep_thought import Activation, BatchSize, Dataset, MeanSquaredError, NetworkBuilder
from deep_thought.utils import plot_history, setup_logger


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--csv", default="datasets/heart_failure_clinical_records_dataset.csv")
    parser.add_argument("--epochs", type=int, default=20)
    parser.add_argument("--lr", type=float, default=0.01)
    parser.add_argument("--plot", default=None)
    args = parser.parse_args()

    setup_logger("deep_thought.train", "logs/train.log")
    setup_logger("deep_thought.val", "logs/val.log")

    dataset = Dataset.from_csv(
        args.csv,
        label_columns="DEATH_EVENT",
        train_fraction=0.8,
        batch_size=BatchSize.of(2),
        shuffle=True,
        seed=0,
    )
    # columns span several orders of magnitude (platelets vs. flags)
    mean = dataset.inputs.mean(axis=0)
    std = dataset.inputs.std(axis=0) + 1e-8
    dataset.inputs = (dataset.inputs - mean) / std

    net = (
        NetworkBuilder()
        .learning_rate(args.lr)
        .momentum(0.9)
        .seed(0)
        .init("xavier")
        .gradient_mode("layer")
        .add_layer(dataset.num_features, 20, Activation.relu())
        .add_layer(20, 10, Activation.relu())
        .add_layer(10, 5, Activation.relu())
        .add_layer(5, 1, Activation.sigmoid())
        .build()
    )
    print(net)

    loss_fn = MeanSquaredError()
    history = net.fit(dataset, loss_fn, epochs=args.epochs, log_every=1)
    net.evaluate(dataset, loss_fn)

    if args.plot is not None:
        plot_history(history, path=args.plot)


if __name__ == "__main__":
    main()
