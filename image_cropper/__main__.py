from image_cropper.app import main

main()
