# voxmix

Audio building blocks for small voice conferences, written in pure Python with no runtime dependencies.

- **Multi-party mixing.** `voxmix.mixer.MultiPartyMixer` keeps a timed buffer of 16-bit PCM for each participant and one buffer for the sum of all participants. For each participant it returns the mix of everyone else. The output is scaled with an adaptive factor so that samples stay within ±32737.
- **RTP headers.** `voxmix.rtp.RtpHeader.parse` reads the fixed RTP header and its CSRC list. `voxmix.rtp.rtp_timestamp` reads only the timestamp field.
- **Timed sample buffers.** `voxmix.sample_array.SampleArray` is a ring buffer of 16384 samples, addressed by wrapping 32-bit sample timestamps. The comparators `ts_less` (32-bit) and `sys_ts_less` (48-bit) order timestamps correctly across wrap-around.
- **FFT.** `voxmix.fft.Fft4g` runs in-place complex (`cdft`) and real (`rdft`) transforms on power-of-two lengths and caches its cos/sin tables. `make_wt` and `make_ct` build those tables. The butterfly and bit-reversal kernels are in `voxmix.fft_kernels`.
- **Noise suppression.** `voxmix.noise_suppression.NoiseSuppressor` processes 10 ms frames at 8, 16 or 32 kHz. It estimates the noise with quantiles (`voxmix.ns_model`), classifies speech against noise with a prior model (`voxmix.ns_prior`), and applies a Wiener-style gain. There are four levels of aggressiveness (`Policy`). `AudioDenoiser` wraps it to handle two frames per call with `Policy.AGGRESSIVE`.

## Installation

```
pip install .
```

To install the test tools as well:

```
pip install ".[test]"
```

## Mixing a conference

The mixer works on decoded PCM. Each frame is 160 samples at 8 kHz. The RTP packet is passed with each frame only so that its timestamp can place the frame in time.

```python
from voxmix.mixer import MultiPartyMixer

mixer = MultiPartyMixer(base_ts=0)            # system time origin, in ms

mixer.put_channel_packet(1, timestamp=0, packet=packet_a, pcm=pcm_a)
mixer.put_channel_packet(2, timestamp=0, packet=packet_b, pcm=pcm_b)

others_for_1 = mixer.get_channel_packet(1, ts=40)   # everyone except channel 1
full_mix = mixer.get_channel_packet(0, ts=40)       # channel 0: the whole mix
```

How the mixer handles its inputs:

- A frame is placed 40 ms later than its RTP timestamp, mapped onto the mixer's clock, indicates.
- The first packet on a channel registers that channel. You can also register it in advance with `add_channel`. `is_new_channel` reports whether a channel is known yet.
- An empty `packet` is ignored.
- A frame that is not 160 samples long, or that holds a sample outside the 16-bit range, raises `ValueError`.
- Asking `get_channel_packet` for an unknown channel raises `ChannelNotFoundError`. The exception is channel 0, which returns the full mix.

## Suppressing noise

You supply the analysis/synthesis window yourself. It needs 128 values at 8 kHz and 256 values at 16 and 32 kHz.

```python
import math
from voxmix.noise_suppression import AudioDenoiser, NoiseSuppressor, Policy

window = [math.sin(math.pi * (i + 0.5) / 256) for i in range(256)]

ns = NoiseSuppressor(16000, window)
ns.set_policy(Policy.AGGRESSIVE)
low, high = ns.process(frame)      # frame: 160 ints (10 ms at 16 kHz); high is None
print(ns.prior_speech_probability())

window8k = [math.sin(math.pi * (i + 0.5) / 128) for i in range(128)]
denoiser = AudioDenoiser(8000, window8k)
clean = denoiser.process(samples)  # 160 samples, handled as two 80-sample frames
```

At 32 kHz, `process` needs the upper-band frame as `frame_high`. It then returns the processed upper band as the second item.

Each of these raises `ValueError`:

- a sample rate other than 8000, 16000 or 32000;
- a window of the wrong length;
- a frame of the wrong length;
- a policy outside 0–3.

## What the package does not do

voxmix does not:

- encode or decode speech codecs;
- send or receive network traffic;
- capture or play audio;
- provide a command-line program.

It also does not ship a ready-made noise-suppression window. The caller feeds in decoded PCM and takes PCM back.

## Running the tests

```
pytest
```