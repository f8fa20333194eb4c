#!/usr/bin/env python3
"""
Example usage of the deep_thought package.

Trains a 2-3-3-1 sigmoid network on XOR. Gradients come from dual numbers
carried through the forward pass, not from backpropagation.
"""

from deep_thought import Activation, BatchSize, Dataset, MeanSquaredError, NetworkBuilder


def main():
    print("deep_thought XOR Example")
    print("=" * 50)

    print("1. Building the dataset...")
    inputs = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
    labels = [[0.0], [1.0], [1.0], [0.0]]
    dataset = Dataset(inputs, labels, train_fraction=1.0, batch_size=BatchSize.ONE)
    loss_fn = MeanSquaredError()

    print("\n2. Building the network...")
    net = (
        NetworkBuilder()
        .learning_rate(0.3)
        .momentum(0.1)
        .seed(7)
        .add_layer(2, 3, Activation.sigmoid())
        .add_layer(3, 3, Activation.sigmoid())
        .add_layer(3, 1, Activation.sigmoid())
        .build()
    )
    print(net)
    print(f"Model parameters: {net.num_parameters}")

    print("\n3. Training...")
    history = net.fit(dataset, loss_fn, epochs=11000, log_every=1000)
    print(f"Final loss: {history[-1]:.4f}")

    print("\n4. Evaluating...")
    # the XOR dataset is too small for a test split, evaluate on train
    for sample, label in dataset.iter_train():
        out = net.predict(sample)
        print(f"{sample[0]} -> {out[0, 0]:.3f} (rounded {round(out[0, 0])}, expected {label[0, 0]:.0f})")
    mean_loss = net.evaluate(dataset, loss_fn, split="train")
    print(f"Mean loss over {len(dataset)} samples: {mean_loss:.4f}")


if __name__ == "__main__":
    main()
