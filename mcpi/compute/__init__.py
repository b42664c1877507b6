"""Sample generation, CPU baseline and OpenCL kernel strategies."""
