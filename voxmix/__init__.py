"""Multi-party PCM mixing, RTP header parsing, timed sample buffers, FFT and noise suppression."""

__version__ = "0.1.0"

__all__ = [
    "fft",
    "fft_kernels",
    "mixer",
    "noise_suppression",
    "ns_model",
    "ns_prior",
    "rtp",
    "sample_array",
]